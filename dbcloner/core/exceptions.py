"""Exceptions raised by the cloning core."""


class SchemaEmptyError(Exception):
    """Raised when the source database has no base tables.

    Non-fatal: the pipeline catches it and produces an empty but valid output.
    """

    def __init__(self, database_name: str):
        self.database_name = database_name
        super().__init__(f"No base tables found in database '{database_name}'")
