"""Kubernetes API integration.

Implements the catalog's Kubernetes facade against the Kubernetes REST API,
one HTTP client per configured cluster context:

- GET /apis/apps/v1/namespaces/{namespace}/deployments/{name}
- GET /apis/apps/v1/namespaces/{namespace}/deployments
- GET /version
"""

import logging
from datetime import datetime
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.entities.service_health import DeploymentCondition
from src.domain.repositories.kubernetes_gateway import (
    DeploymentNotFoundError,
    DeploymentObservation,
    KubernetesContextError,
    KubernetesGatewayInterface,
    KubernetesUnavailableError,
)
from src.infrastructure.config.settings import ClusterSettings
from src.infrastructure.observability.metrics import record_kubernetes_call

logger = logging.getLogger(__name__)


class KubernetesApiClient(KubernetesGatewayInterface):
    """Kubernetes facade backed by httpx.

    Attributes:
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        clusters: dict[str, ClusterSettings],
        timeout: float = 10.0,
    ) -> None:
        """Initialize one client per cluster context.

        Args:
            clusters: Cluster connection settings keyed by context
            timeout: Per-request timeout in seconds
        """
        self.timeout = timeout
        self._clients: dict[str, httpx.AsyncClient] = {}
        for context, cluster in clusters.items():
            headers = {"Accept": "application/json"}
            if cluster.token:
                headers["Authorization"] = f"Bearer {cluster.token}"
            self._clients[context] = httpx.AsyncClient(
                base_url=cluster.api_server.rstrip("/"),
                headers=headers,
                verify=cluster.verify_ssl,
                timeout=timeout,
            )

    def contexts(self) -> list[str]:
        return sorted(self._clients)

    async def close(self) -> None:
        """Close every HTTP client."""
        for client in self._clients.values():
            await client.aclose()

    async def __aenter__(self) -> "KubernetesApiClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_deployment_health(
        self, context: str, namespace: str, name: str
    ) -> DeploymentObservation:
        """Observe a deployment.

        Raises:
            KubernetesContextError: Unknown context
            DeploymentNotFoundError: Deployment does not exist
            KubernetesUnavailableError: Cluster unreachable or API error
        """
        path = f"/apis/apps/v1/namespaces/{namespace}/deployments/{name}"
        response = await self._request(context, path, "get_deployment")
        if response.status_code == 404:
            record_kubernetes_call("get_deployment", "not_found")
            raise DeploymentNotFoundError(context, namespace, name)
        self._raise_for_status(context, response, path, "get_deployment")

        data = self._decode(context, response, path, "get_deployment")
        try:
            observation = self.parse_deployment(data)
        except (AttributeError, TypeError, ValueError) as e:
            record_kubernetes_call("get_deployment", "error")
            raise KubernetesUnavailableError(
                f"Malformed deployment from context '{context}': {e}", context
            ) from e
        record_kubernetes_call("get_deployment", "success")
        return observation

    async def list_deployments(self, context: str, namespace: str) -> list[str]:
        """List deployment names in a namespace.

        Raises:
            KubernetesContextError: Unknown context
            KubernetesUnavailableError: Cluster unreachable or API error
        """
        path = f"/apis/apps/v1/namespaces/{namespace}/deployments"
        response = await self._request(context, path, "list_deployments")
        self._raise_for_status(context, response, path, "list_deployments")

        data = self._decode(context, response, path, "list_deployments")
        try:
            names = [
                str(item["metadata"]["name"])
                for item in data.get("items") or []
                if (item.get("metadata") or {}).get("name")
            ]
        except (AttributeError, TypeError, KeyError) as e:
            record_kubernetes_call("list_deployments", "error")
            raise KubernetesUnavailableError(
                f"Malformed deployment list from context '{context}': {e}", context
            ) from e
        record_kubernetes_call("list_deployments", "success")
        return names

    async def validate_context(self, context: str) -> bool:
        """Check that the context is configured and its API server answers."""
        if context not in self._clients:
            return False
        try:
            response = await self._request(context, "/version", "validate_context")
        except KubernetesUnavailableError:
            return False
        ok = response.status_code == 200
        record_kubernetes_call("validate_context", "success" if ok else "error")
        return ok

    @staticmethod
    def parse_deployment(data: dict[str, Any]) -> DeploymentObservation:
        """Build an observation from an apps/v1 Deployment object."""
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}

        conditions = []
        timestamps: list[datetime] = []
        for condition in status.get("conditions") or []:
            conditions.append(
                DeploymentCondition(
                    type=str(condition.get("type", "")),
                    status=str(condition.get("status", "")),
                )
            )
            for key in ("lastUpdateTime", "lastTransitionTime"):
                parsed = _parse_timestamp(condition.get(key))
                if parsed is not None:
                    timestamps.append(parsed)

        replicas = spec.get("replicas")
        return DeploymentObservation(
            name=str(metadata.get("name", "")),
            ready_replicas=int(status.get("readyReplicas") or 0),
            desired_replicas=int(replicas if replicas is not None else 1),
            conditions=tuple(conditions),
            last_updated=max(timestamps) if timestamps else None,
        )

    async def _request(self, context: str, path: str, operation: str) -> httpx.Response:
        client = self._clients.get(context)
        if client is None:
            record_kubernetes_call(operation, "unknown_context")
            raise KubernetesContextError(
                f"Kubernetes context '{context}' is not configured", context
            )
        try:
            return await self._get_with_retry(client, path)
        except httpx.RequestError as e:
            logger.error("Kubernetes connection error: context=%s error=%s", context, str(e))
            record_kubernetes_call(operation, "error")
            raise KubernetesUnavailableError(
                f"Failed to reach Kubernetes context '{context}': {e}", context
            ) from e

    @retry(
        retry=retry_if_exception_type(httpx.RequestError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _get_with_retry(self, client: httpx.AsyncClient, path: str) -> httpx.Response:
        return await client.get(path)

    @staticmethod
    def _decode(
        context: str, response: httpx.Response, path: str, operation: str
    ) -> dict[str, Any]:
        """JSON object body of a successful response."""
        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "Kubernetes returned a non-JSON body: context=%s path=%s", context, path
            )
            record_kubernetes_call(operation, "error")
            raise KubernetesUnavailableError(
                f"Kubernetes context '{context}' returned a non-JSON response", context
            ) from e
        if not isinstance(data, dict):
            record_kubernetes_call(operation, "error")
            raise KubernetesUnavailableError(
                f"Kubernetes context '{context}' returned an unexpected body", context
            )
        return data

    @staticmethod
    def _raise_for_status(
        context: str, response: httpx.Response, path: str, operation: str
    ) -> None:
        if response.status_code < 400:
            return
        logger.error(
            "Kubernetes HTTP error: context=%s status_code=%s path=%s",
            context,
            response.status_code,
            path,
        )
        record_kubernetes_call(operation, "error")
        raise KubernetesUnavailableError(
            f"Kubernetes context '{context}' returned {response.status_code}", context
        )


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
