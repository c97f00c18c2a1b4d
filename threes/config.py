import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from threes.reward_functions import REWARD_FUNCTIONS


class ConfigError(ValueError):
    """Malformed or missing agent configuration."""


@dataclass(frozen=True)
class AgentConfig:
    """Agent settings parsed once from a ``key=value key=value`` string.

    Numeric keys are converted and checked when the config is built; keys the
    agents do not know are kept in ``extra``.
    """

    name: str = "unknown"
    role: str = "unknown"
    seed: Optional[int] = None
    init: Optional[Tuple[int, ...]] = None
    load: Optional[str] = None
    save: Optional[str] = None
    alpha: float = 0.0
    reward: str = "log_bin"
    extra: Dict[str, str] = field(default_factory=dict)
    raw: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    KNOWN_KEYS = ("name", "role", "seed", "init", "load", "save", "alpha", "reward")

    @classmethod
    def parse(cls, args: str = "", defaults: str = "") -> "AgentConfig":
        """Parse ``args`` on top of ``defaults``; later tokens win."""
        meta: Dict[str, str] = {"name": "unknown", "role": "unknown"}
        for token in f"{defaults} {args}".split():
            key, sep, value = token.partition("=")
            if not sep or not key:
                raise ConfigError(f"malformed agent option {token!r}, expected key=value")
            meta[key] = value
        return cls.from_mapping(meta)

    @classmethod
    def from_mapping(cls, meta: Dict[str, str]) -> "AgentConfig":
        kwargs = {
            "name": meta.get("name", "unknown"),
            "role": meta.get("role", "unknown"),
            "load": meta.get("load") or None,
            "save": meta.get("save") or None,
            "extra": {k: v for k, v in meta.items() if k not in cls.KNOWN_KEYS},
            "raw": dict(meta),
        }
        if "seed" in meta:
            kwargs["seed"] = _convert(meta, "seed", int)
        if "alpha" in meta:
            kwargs["alpha"] = _convert(meta, "alpha", float)
        if "init" in meta:
            sizes = tuple(int(s) for s in re.findall(r"\d+", meta["init"]))
            if not sizes:
                raise ConfigError(f"init={meta['init']!r} holds no table sizes")
            if any(s <= 0 for s in sizes):
                raise ConfigError(f"init={meta['init']!r} holds a table size that is not positive")
            kwargs["init"] = sizes
        if "reward" in meta:
            if meta["reward"] not in REWARD_FUNCTIONS:
                raise ConfigError(f"unknown reward={meta['reward']!r}, "
                                  f"expected one of {sorted(REWARD_FUNCTIONS)}")
            kwargs["reward"] = meta["reward"]
        return cls(**kwargs)

    def property(self, key: str) -> str:
        """Raw string value of ``key``; absent keys are an error, never defaulted."""
        try:
            return self.raw[key]
        except KeyError:
            raise ConfigError(f"missing agent option {key!r}") from None

    def updated(self, message: str) -> "AgentConfig":
        """Copy with one ``key=value`` message applied."""
        key, sep, value = message.partition("=")
        if not sep or not key:
            raise ConfigError(f"malformed agent option {message!r}, expected key=value")
        meta = dict(self.raw)
        meta[key] = value
        return self.from_mapping(meta)


def _convert(meta: Dict[str, str], key: str, kind):
    try:
        return kind(meta[key])
    except ValueError:
        raise ConfigError(f"{key}={meta[key]!r} is not a valid {kind.__name__}") from None
