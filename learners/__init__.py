from .approximators import FunctionApproximator, LookUpTable
from .credit import TTD, Call, CreditAssigner, Experience, ExperienceBuffer, UtilityFunction
from .errors import InvalidParameter, InvalidState, LearningError, OutOfRange
from .learner import Algorithm, Learner, QLearner, UtilityCallbacks, q_learning, sarsa
from .selectors import ActionSelector, BoltzmannSelector, EpsilonGreedySelector

__all__ = [
    "ActionSelector",
    "Algorithm",
    "BoltzmannSelector",
    "Call",
    "CreditAssigner",
    "EpsilonGreedySelector",
    "Experience",
    "ExperienceBuffer",
    "FunctionApproximator",
    "InvalidParameter",
    "InvalidState",
    "Learner",
    "LearningError",
    "LookUpTable",
    "OutOfRange",
    "QLearner",
    "TTD",
    "UtilityCallbacks",
    "UtilityFunction",
    "q_learning",
    "sarsa",
]
