from chatbridge.services.nlu.base import Decision, DecisionType, NluEngine
from chatbridge.services.nlu.wit_provider import WitEngine

__all__ = ["Decision", "DecisionType", "NluEngine", "WitEngine"]
