"""Message catalog: resolve message-template keys to text for a meta-model version."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from typing import TYPE_CHECKING, Protocol

import yaml

from aspectlint.versions import UnsupportedVersionError, VersionRange, parse_version

if TYPE_CHECKING:
    from pathlib import Path

    from aspectlint.versions import MetaModelVersion

DEFAULT_MESSAGES_RESOURCE = "messages.yml"


class MessageCatalogError(ValueError):
    """Raised when a message file is malformed or a key cannot be resolved."""


class MessageResolver(Protocol):
    """Anything that turns a template key into text for a version."""

    def __call__(self, key: str, version: MetaModelVersion, **args: str) -> str: ...


@dataclass(frozen=True)
class _Template:
    text: str
    versions: VersionRange = VersionRange()


class MessageCatalog:
    """Message templates loaded from YAML, with optional per-version variants."""

    def __init__(self, templates: dict[str, tuple[_Template, ...]]) -> None:
        self._templates = templates

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    def keys(self) -> list[str]:
        return sorted(self._templates)

    def template(self, key: str, version: MetaModelVersion) -> str:
        variants = self._templates.get(key)
        if variants is None:
            msg = f"Unknown message key '{key}'"
            raise MessageCatalogError(msg)
        for variant in variants:
            if variant.versions.contains(version):
                return variant.text
        msg = f"Message '{key}' has no variant for version {version}"
        raise MessageCatalogError(msg)

    def __call__(self, key: str, version: MetaModelVersion, **args: str) -> str:
        template = self.template(key, version)
        try:
            return template.format(**args)
        except (KeyError, IndexError) as exc:
            msg = f"Message '{key}' uses an unknown placeholder: {exc}"
            raise MessageCatalogError(msg) from exc


def _parse_variants(key: str, raw: object) -> tuple[_Template, ...]:
    if isinstance(raw, str):
        return (_Template(text=raw),)
    if not isinstance(raw, list) or not raw:
        msg = f"Message '{key}' must be a string or a non-empty list of variants"
        raise MessageCatalogError(msg)
    variants: list[_Template] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            msg = f"Message '{key}': variant at index {idx} must be a mapping with 'text'"
            raise MessageCatalogError(msg)
        try:
            since = parse_version(str(item["since"])) if "since" in item else None
            until = parse_version(str(item["until"])) if "until" in item else None
        except UnsupportedVersionError as exc:
            msg = f"Message '{key}': {exc}"
            raise MessageCatalogError(msg) from exc
        variants.append(_Template(text=item["text"], versions=VersionRange(since, until)))
    return tuple(variants)


def parse_messages(data: object, source: str = DEFAULT_MESSAGES_RESOURCE) -> MessageCatalog:
    if not isinstance(data, dict):
        msg = f"{source} must be a YAML mapping"
        raise MessageCatalogError(msg)
    messages = data.get("messages")
    if not isinstance(messages, dict):
        msg = f"{source}: 'messages' must be a mapping"
        raise MessageCatalogError(msg)
    return MessageCatalog({str(k): _parse_variants(str(k), v) for k, v in messages.items()})


def load_messages(path: Path) -> MessageCatalog:
    """Load a message catalog from a YAML file."""
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = f"{path}: invalid YAML: {exc}"
        raise MessageCatalogError(msg) from exc
    return parse_messages(data, source=str(path))


def default_messages() -> MessageCatalog:
    """Return the message catalog shipped with the package."""
    resource = resources.files("aspectlint.rules") / "data" / DEFAULT_MESSAGES_RESOURCE
    return parse_messages(yaml.safe_load(resource.read_text(encoding="utf-8")))
