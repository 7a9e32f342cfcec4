"""sqlbind core: parsing, type inference and live validation of SQL operations.

Architecture Overview:
- types.py: closed type catalog, value synthesis and Python types
- scanner.py: ``$N::TYPE`` annotation scanner
- directives.py: ``-- opt $N`` comment directives
- splitter.py: ``--- title`` sections and ``;`` statements
- operation.py: Operation and the type reconciling OperationBuilder
- validator.py: LiveValidator and validation reports
- group.py: OperationGroup and the per document parser
- bindings.py: BindingDescriptor emitter
"""

from sqlbind.core.bindings import BindingDescriptor, BindingParameter, emit, emit_all, emit_group
from sqlbind.core.directives import OptionalParameter, ParsedDirectives, parse_directives
from sqlbind.core.group import OperationGroup, OperationGroupParser, ParseResult
from sqlbind.core.operation import Operation, OperationBuilder
from sqlbind.core.scanner import ParameterAnnotation, ScannerState, declared_types, scan_parameters
from sqlbind.core.splitter import Section, normalize_operation_name, split_sections, split_statements
from sqlbind.core.types import SqlTypeName, ValueSynthesizer, from_database, python_type, resolve, same_family
from sqlbind.core.validator import (
    LiveValidator,
    OutcomeStatus,
    StatementOutcome,
    ValidationConfig,
    ValidationReport,
    ValidationRun,
)

__all__ = (
    "BindingDescriptor",
    "BindingParameter",
    "LiveValidator",
    "Operation",
    "OperationBuilder",
    "OperationGroup",
    "OperationGroupParser",
    "OptionalParameter",
    "OutcomeStatus",
    "ParameterAnnotation",
    "ParseResult",
    "ParsedDirectives",
    "ScannerState",
    "Section",
    "SqlTypeName",
    "StatementOutcome",
    "ValidationConfig",
    "ValidationReport",
    "ValidationRun",
    "ValueSynthesizer",
    "declared_types",
    "emit",
    "emit_all",
    "emit_group",
    "from_database",
    "normalize_operation_name",
    "parse_directives",
    "python_type",
    "resolve",
    "same_family",
    "scan_parameters",
    "split_sections",
    "split_statements",
)
