"""sqlbind: typed, live-validated bindings from hand-written SQL."""

from sqlbind import adapters, core, exceptions, loader, utils
from sqlbind.__metadata__ import __version__
from sqlbind.core import (
    BindingDescriptor,
    BindingParameter,
    LiveValidator,
    Operation,
    OperationBuilder,
    OperationGroup,
    OperationGroupParser,
    ParseResult,
    SqlTypeName,
    ValidationConfig,
    ValidationRun,
    emit,
    emit_all,
    emit_group,
    scan_parameters,
    split_sections,
)
from sqlbind.exceptions import OperationGroupError, SQLBindError
from sqlbind.loader import OperationLoader, SQLDocument
from sqlbind.protocols import ValidationDriver

__all__ = (
    "BindingDescriptor",
    "BindingParameter",
    "LiveValidator",
    "Operation",
    "OperationBuilder",
    "OperationGroup",
    "OperationGroupError",
    "OperationGroupParser",
    "OperationLoader",
    "ParseResult",
    "SQLBindError",
    "SQLDocument",
    "SqlTypeName",
    "ValidationConfig",
    "ValidationDriver",
    "ValidationRun",
    "__version__",
    "adapters",
    "core",
    "emit",
    "emit_all",
    "emit_group",
    "exceptions",
    "loader",
    "scan_parameters",
    "split_sections",
    "utils",
)
