"""Resource naming and tagging convention.

A base name is the concatenation of short codes, for example
aws + linux + prod + "web" + 1 -> "alpweb01". Child resources of a component
append a suffix to it ("alpweb01-sg", "alpweb01-role").
"""
from dataclasses import dataclass

from . import validation
from .errors import InputValidationError

PROVIDER_CODES = {
    "aws": "a",
}

OS_CODES = {
    "linux": "l",
    "windows": "w",
}

ENVIRONMENT_CODES = {
    "dev": "d",
    "test": "t",
    "uat": "u",
    "staging": "s",
    "prod": "p",
}

PURPOSE_PATTERN = r"[a-z][a-z0-9]{1,5}"

# NetBIOS computer name limit
WINDOWS_MAX_LENGTH = 15

MANAGED_BY = "pulumi"


def _code(argument, value, codes):
    key = str(value).lower()
    if key not in codes:
        raise InputValidationError(argument, f"{value!r} is not one of {', '.join(codes)}")
    return codes[key]


def compose_name(provider, os, environment, purpose, index=1):
    name = "".join([
        _code("provider", provider, PROVIDER_CODES),
        _code("os", os, OS_CODES),
        _code("environment", environment, ENVIRONMENT_CODES),
        validation.matches("purpose", purpose, PURPOSE_PATTERN),
        "%02d" % validation.in_range("index", index, 1, 99),
    ])
    if os.lower() == "windows" and len(name) > WINDOWS_MAX_LENGTH:
        raise InputValidationError("purpose", f"windows name {name!r} is longer than {WINDOWS_MAX_LENGTH} characters")
    return name


def suffixed(name, suffix):
    return f"{name}-{suffix}" if suffix else name


@dataclass
class ResourceName:
    """Naming inputs shared by every component of one workload."""
    purpose: str
    environment: str = "dev"
    os: str = "linux"
    provider: str = "aws"
    index: int = 1

    def __post_init__(self):
        # fail at construction rather than on first use
        self.name

    @property
    def name(self) -> str:
        return compose_name(self.provider, self.os, self.environment, self.purpose, self.index)

    def child(self, suffix) -> str:
        return suffixed(self.name, suffix)

    def tags(self, default_tags=None, extra_tags=None):
        """Convention tags, then stack defaults, then caller tags.

        Name always carries the composed name.
        """
        tags = {
            "Provider": self.provider.lower(),
            "OperatingSystem": self.os.lower(),
            "Environment": self.environment.lower(),
            "Purpose": self.purpose,
            "ManagedBy": MANAGED_BY,
        }
        tags.update(default_tags or {})
        tags.update(extra_tags or {})
        tags["Name"] = self.name
        return tags

    @classmethod
    def from_config(cls, data) -> "ResourceName":
        if "purpose" not in data:
            raise InputValidationError("naming.purpose", "is required")
        known = ("purpose", "environment", "os", "provider", "index")
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise InputValidationError("naming", f"unknown keys {', '.join(unknown)}")
        return cls(**{key: data[key] for key in known if key in data})


def merge_tags(name, default_tags=None, extra_tags=None):
    """Tags for a component named explicitly rather than by convention."""
    tags = {"ManagedBy": MANAGED_BY}
    tags.update(default_tags or {})
    tags.update(extra_tags or {})
    tags["Name"] = name
    return tags


def resolve(name, default_tags=None, extra_tags=None):
    """Return (name, tags) for a ResourceName or a plain string name."""
    if isinstance(name, ResourceName):
        return name.name, name.tags(default_tags, extra_tags)
    if not isinstance(name, str) or not name:
        raise InputValidationError("name", f"{name!r} is not a ResourceName or a non-empty string")
    return name, merge_tags(name, default_tags, extra_tags)
