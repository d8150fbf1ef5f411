from .pair import SimulatedPair

__all__ = ["SimulatedPair"]
