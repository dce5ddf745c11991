"""Inference configuration: link mappings and declared field types.

Configuration is usually kept in a YAML file next to the data::

    mapping:
      Post.author: Author
      Post.items.category: Category

    declared:
      Author:
        bio: String
        aliases: "[String]"
      Post:
        meta: PostMeta
      PostMeta:
        rating: Float

    on_unresolved_link: raise   # or: skip

Declared references are written as ``Name`` or ``[Name]``; full schema
definition languages are out of scope and are expected to be converted
to this form by the caller.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from infergraph.model.types import DeclaredTypeRef, ListRef, NamedRef, parse_declared

logger = logging.getLogger(__name__)


class LinkErrorPolicy(Enum):
    """What a build pass does when a kind has an unresolvable link field."""

    RAISE = "raise"
    SKIP_KIND = "skip"


class ConfigError(ValueError):
    """Raised when a configuration document is malformed."""


@dataclass(frozen=True)
class InferenceConfig:
    """Configuration for a schema build pass.

    Parameters
    ----------
    link_mapping:
        ``"Kind.path" -> target kind``; fields whose values are ids of
        records of the target kind.
    declared_types:
        ``type name -> field name -> declared reference``.
    on_unresolved_link:
        Abort the pass (default) or skip the offending record kind.
    """

    link_mapping: Mapping[str, str] = field(default_factory=dict)
    declared_types: Mapping[str, Mapping[str, DeclaredTypeRef]] = field(default_factory=dict)
    on_unresolved_link: LinkErrorPolicy = LinkErrorPolicy.RAISE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "InferenceConfig":
        """Build a config from a plain dict (the parsed YAML document).

        Raises
        ------
        ConfigError
            If a section has the wrong shape or a declared reference does
            not parse.
        """
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        mapping = data.get("mapping") or {}
        if not isinstance(mapping, Mapping):
            raise ConfigError("'mapping' must map field selectors to record kinds")

        declared_section = data.get("declared") or {}
        if not isinstance(declared_section, Mapping):
            raise ConfigError("'declared' must map type names to field declarations")
        declared: dict[str, dict[str, DeclaredTypeRef]] = {}
        for type_name, fields in declared_section.items():
            if not isinstance(fields, Mapping):
                raise ConfigError(f"Declared type {type_name!r} must map field names to types")
            declared[str(type_name)] = {
                str(name): _to_ref(ref, f"{type_name}.{name}") for name, ref in fields.items()
            }

        policy_text = str(data.get("on_unresolved_link", LinkErrorPolicy.RAISE.value))
        try:
            policy = LinkErrorPolicy(policy_text)
        except ValueError:
            raise ConfigError(
                f"'on_unresolved_link' must be one of "
                f"{[p.value for p in LinkErrorPolicy]}, got {policy_text!r}"
            ) from None

        return cls(
            link_mapping={str(k): str(v) for k, v in mapping.items()},
            declared_types=declared,
            on_unresolved_link=policy,
        )

    @classmethod
    def from_yaml(cls, text: str) -> "InferenceConfig":
        """Parse a YAML configuration document."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML configuration: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> "InferenceConfig":
        """Read and parse a YAML configuration file."""
        config = cls.from_yaml(Path(path).read_text(encoding="utf-8"))
        logger.debug(
            "Loaded config from %s: %d mapping(s), %d declared type(s)",
            path,
            len(config.link_mapping),
            len(config.declared_types),
        )
        return config


def _to_ref(raw: Any, where: str) -> DeclaredTypeRef:
    if isinstance(raw, (NamedRef, ListRef)):
        return raw
    if isinstance(raw, list) and len(raw) == 1:
        # YAML flow sequence: [String]
        return ListRef(_to_ref(raw[0], where))
    if not isinstance(raw, str):
        raise ConfigError(f"Declared type for {where!r} must be a string, got {raw!r}")
    try:
        return parse_declared(raw)
    except ValueError as exc:
        raise ConfigError(f"Declared type for {where!r}: {exc}") from exc
