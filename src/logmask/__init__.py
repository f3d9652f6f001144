"""logmask — line-oriented masking of sensitive values in log files."""

from .redactor import Redactor, RedactorConfig, scan
from .ledger import build_ledger, ledger_from_diff
from .patterns import Category, PatternRegistry, PatternRule, build_registry
from .config import create_redactor, create_upload_policy, load_config, load_from_yaml
from .upload import UploadPolicy, content_hash, masked_filename
from .errors import (
    ConfigError, FileTooLarge, LineCountChanged, LogMaskError,
    UnreadableFile, UnsupportedFileType, UploadRejected,
)
from .types import RedactionRecord, ScanResult

__all__ = [
    "Redactor", "RedactorConfig", "scan",
    "build_ledger", "ledger_from_diff",
    "Category", "PatternRegistry", "PatternRule", "build_registry",
    "create_redactor", "create_upload_policy", "load_config", "load_from_yaml",
    "UploadPolicy", "content_hash", "masked_filename",
    "ConfigError", "FileTooLarge", "LineCountChanged", "LogMaskError",
    "UnreadableFile", "UnsupportedFileType", "UploadRejected",
    "RedactionRecord", "ScanResult",
]
__version__ = "0.1.0"
