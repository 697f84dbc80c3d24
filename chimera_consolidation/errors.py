"""
Failure types of the embedding engine.
"""


class InfeasibleEmbeddingError(Exception):
    """
    The problem cannot be embedded with the available qubits.

    Raised when the hardware capacity is exceeded or when too many of the
    required chains contain broken qubits. Callers typically retry with a
    smaller problem or report that no mapping exists.
    """
