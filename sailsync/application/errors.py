"""
Errors raised by the use cases (domain modules define their own ValueError subclasses)
"""


class NotFoundError(ValueError):
    """Referenced record does not exist in the current snapshot"""
    pass


class AssignmentConflictError(ValueError):
    """Write rejected because crew conflicts are enforced"""

    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        codes = ", ".join(sorted({c.code for c in self.conflicts}))
        super().__init__(f"Assignment conflicts: {codes}")


class StoreWriteError(RuntimeError):
    """The store refused a write; the session was rolled back"""
    pass
