"""
Base exception for alcollector.

Concrete errors live next to the code that raises them:
- runtime.session: SourceRootError, ScriptLoadError (fatal for a source root)
- runtime.records: RecordError, CyclicBaseError, MissingBaseError (per record)
- resolver.fields: FieldError (per record)
"""


class CollectorError(Exception):
    """Base class for all collector errors."""
