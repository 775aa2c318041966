"""
Mass-assignment whitelist policy.

Every model gets a MassAssignmentPolicy built from its Meta options:

    class Meta:
        attr_accessible = ("title", "body")
        # or per role
        attr_accessible = {"default": ("body",), "admin": ("body", "approved")}
        # or a blacklist instead
        attr_protected = ("approved",)

The primary key is always protected. A model that declares neither option
accepts nothing when ``whitelist_attributes`` is on (the default).
"""
import logging

from safeorm.config import get_settings
from safeorm.errors import ForbiddenAttributeError, ConfigurationError

logger = logging.getLogger("safeorm.security")


class StrictSanitizer:
    name = "strict"

    def process_removed_attributes(self, model_name, attributes):
        raise ForbiddenAttributeError(model_name, attributes)


class LoggerSanitizer:
    name = "logger"

    def process_removed_attributes(self, model_name, attributes):
        logger.warning(
            "Can't mass-assign protected attributes for %s: %s",
            model_name, ", ".join(attributes),
        )


SANITIZERS = {
    "strict": StrictSanitizer(),
    "logger": LoggerSanitizer(),
}


def _by_role(option, option_name, model_name):
    if option is None:
        return None
    if isinstance(option, str):
        option = (option,)
    if isinstance(option, dict):
        return {role: frozenset(names) for role, names in option.items()}
    if isinstance(option, (list, tuple, set, frozenset)):
        return {get_settings().default_role: frozenset(option)}
    raise ConfigurationError(f"{model_name}.Meta.{option_name} must be a sequence or a dict of roles")


class MassAssignmentPolicy:
    def __init__(self, model_name, accessible=None, protected=None, always_protected=(), sanitizer=None):
        if accessible is not None and protected is not None:
            raise ConfigurationError(
                f"{model_name} declares both attr_accessible and attr_protected"
            )
        if sanitizer is not None and sanitizer not in SANITIZERS:
            raise ConfigurationError(f"Unknown mass assignment sanitizer: {sanitizer}")
        self.model_name = model_name
        self.accessible = _by_role(accessible, "attr_accessible", model_name)
        self.protected = _by_role(protected, "attr_protected", model_name)
        self.always_protected = frozenset(name for name in always_protected if name)
        self._sanitizer_name = sanitizer

    def __repr__(self):
        return f"<MassAssignmentPolicy {self.model_name} accessible={self.accessible} protected={self.protected}>"

    @property
    def sanitizer(self):
        return SANITIZERS[self._sanitizer_name or get_settings().mass_assignment_sanitizer]

    def deny(self, name, role):
        if name in self.always_protected:
            return True
        if self.accessible is not None:
            return name not in self.accessible.get(role, ())
        if self.protected is not None:
            return name in self.protected.get(role, ())
        return get_settings().whitelist_attributes

    def sanitize(self, attributes, role=None):
        """Return the permitted subset of ``attributes`` for ``role``."""
        role = role or get_settings().default_role
        permitted = {}
        removed = []
        for name, value in attributes.items():
            if self.deny(str(name), role):
                removed.append(str(name))
            else:
                permitted[str(name)] = value
        if removed:
            self.sanitizer.process_removed_attributes(self.model_name, removed)
        return permitted
