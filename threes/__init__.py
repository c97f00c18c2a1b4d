# Threes game engine and n-tuple TD learning
from .game import Board, Slide, Place, Action, ILLEGAL, face_value, placement_positions
from .weights import WeightStore, WeightFileError
from .ntuple import NTupleNetwork, DEFAULT_PATTERNS
from .config import AgentConfig, ConfigError
from .agents import Agent, RandomPlacer, RandomSlider, MergeLargerSlider, NTupleSlider, Trajectory, create_agent
from .episode import Episode, GameRunner
from .monitoring import EpochStats, save_stats
from .reward_functions import get_reward_function

__all__ = [
    "Board",
    "Slide",
    "Place",
    "Action",
    "ILLEGAL",
    "face_value",
    "placement_positions",

    "WeightStore",
    "WeightFileError",
    "NTupleNetwork",
    "DEFAULT_PATTERNS",

    "AgentConfig",
    "ConfigError",

    "Agent",
    "RandomPlacer",
    "RandomSlider",
    "MergeLargerSlider",
    "NTupleSlider",
    "Trajectory",
    "create_agent",

    "Episode",
    "GameRunner",
    "EpochStats",
    "save_stats",

    "get_reward_function",
]
