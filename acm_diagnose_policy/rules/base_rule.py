class ClassificationRule:
    """
    Base class for violation classification rules.

    Rules are evaluated in ascending priority; the first rule whose
    matches() returns True decides the violation type.
    """

    # ---- Metadata (mandatory) ----
    name: str = "BaseRule"
    priority: int = 100
    violation_type: str = "unknown"

    def matches(self, message: str) -> bool:
        """
        `message` is the full violation message, already lower-cased.
        """
        raise NotImplementedError
