"""Built-in feature capabilities.

``define-feature(name, template)``
    Registers the capability ``template`` under the new feature ``name``
    when evaluated, making ``name`` requestable by every plugin.
    ``template`` is looked up among the registry's templates first and
    its active features second.
``print(message)``, ``debug(message)``, ``warn(message)``
    Log ``message`` on behalf of the plugin.  Not kept on the plugin.
``no-update``
    Excludes the plugin from update tracking.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from loadorder.features.base import Feature

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor
    from loadorder.features.registry import FeatureRegistry

logger = logging.getLogger(__name__)
plugin_logger = logging.getLogger("loadorder.plugins")

_FEATURE_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


class DefineFeature(Feature):
    """Register a template capability under a new feature name."""

    def __init__(self) -> None:
        super().__init__()
        self.feature_name = ""
        self.template_name = ""
        self.registered = False
        self._reported = False

    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        if len(arguments) != 2:
            self.invalid_message = f"expects 2 arguments (name, template), got {len(arguments)}"
            return False
        name, template = arguments
        if not _FEATURE_NAME_RE.match(name):
            self.invalid_message = f"invalid feature name {name!r}"
            return False
        self.feature_name = name
        self.template_name = template
        return True

    def evaluate(self, registry: FeatureRegistry) -> None:
        if self.registered:
            return
        template = registry.find_template(self.template_name)
        if template is None:
            if not self._reported:
                logger.warning(
                    "define-feature on %s: template %r not found",
                    self.descriptor.name if self.descriptor else "?",
                    self.template_name,
                )
                self._reported = True
            return
        if self.feature_name in registry:
            if registry.get(self.feature_name) is not template and not self._reported:
                logger.warning(
                    "define-feature on %s: %r is already defined by another capability",
                    self.descriptor.name if self.descriptor else "?",
                    self.feature_name,
                )
                self._reported = True
            self.registered = registry.get(self.feature_name) is template
            return
        registry.register_class(self.feature_name, template)
        self.registered = True


class PrintFeature(Feature):
    """Log a message from the plugin's manifest."""

    store_on_plugin = False
    level = logging.INFO

    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        plugin_logger.log(self.level, "[%s] %s", descriptor.name, ", ".join(arguments))
        return True


class DebugFeature(PrintFeature):
    level = logging.DEBUG


class WarnFeature(PrintFeature):
    level = logging.WARNING


class NoUpdateFeature(Feature):
    """Mark the plugin as excluded from update tracking."""

    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        if arguments:
            self.invalid_message = "no-update takes no arguments"
            return False
        return True


def excluded_from_updates(descriptor: PluginDescriptor) -> bool:
    """Return True if ``descriptor`` resolved a ``no-update`` feature."""
    return any(isinstance(f, NoUpdateFeature) for f in descriptor.features)


BUILTIN_FEATURES: dict[str, type[Feature]] = {
    "define-feature": DefineFeature,
    "print": PrintFeature,
    "debug": DebugFeature,
    "warn": WarnFeature,
    "no-update": NoUpdateFeature,
}
