"""Version dispatcher: pick the rules and message variants that apply to a meta-model version."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from aspectlint.versions import UnsupportedVersionError, parse_version

if TYPE_CHECKING:
    from aspectlint.graph.accessor import NodeKind
    from aspectlint.rules.catalog import ConstraintRule, RuleCatalog
    from aspectlint.versions import MetaModelVersion

logger = logging.getLogger(__name__)


class VersionDispatcher:
    """Resolves version-gated catalog data: active rules and message-template keys."""

    def __init__(self, catalog: RuleCatalog) -> None:
        self.catalog = catalog

    def active_rules(
        self, kind: NodeKind, version: str | MetaModelVersion
    ) -> tuple[ConstraintRule, ...]:
        rules = self.catalog.rules_for(kind, parse_version(version))
        logger.debug("%d rules active for %s at %s", len(rules), kind.value, version)
        return rules

    def message_for(self, rule_name: str, version: str | MetaModelVersion) -> str:
        """Return the message-template key of *rule_name* for *version*.

        Raises :class:`UnsupportedVersionError` for unknown versions and for
        versions the rule is not active in, and ``KeyError`` for unknown rules.
        """
        parsed = parse_version(version)
        rule = self.catalog.get(rule_name)
        for variant in rule.messages:
            if variant.versions.contains(parsed):
                return variant.key
        msg = f"Rule '{rule_name}' has no message for meta-model version {parsed}"
        raise UnsupportedVersionError(msg)
