"""Jenkins module for perfload."""

from .client import JenkinsClient, JenkinsError

__all__ = [
    "JenkinsClient",
    "JenkinsError",
]
