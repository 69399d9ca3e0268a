"""External integrations.

Facades over the Kubernetes API and the GitHub team directory.
"""

from src.infrastructure.integrations.github_client import GitHubTeamDirectory
from src.infrastructure.integrations.kubernetes_client import KubernetesApiClient

__all__ = [
    "KubernetesApiClient",
    "GitHubTeamDirectory",
]
