"""Kubernetes implementation of the cluster and metrics collaborators."""

import asyncio

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubescaler.cluster.base import ClusterClient, MetricsClient
from kubescaler.constants import *
from kubescaler.errors import ConfigError, ConflictError, FatalError, NotFoundError, TransientError
from kubescaler.models import PerInstanceUsage, ReplicaState, WorkloadRef
from kubescaler.utils.quantity import parse_cpu_millicores, parse_memory_bytes
from typing import Dict, List, Optional, Tuple

import urllib3

def load_clients(kubeconfig=None, context=None) -> client.ApiClient:
    """
    Builds an API client from the in-cluster service account, falling back to a kubeconfig file.
    An explicit kubeconfig or context skips the in-cluster attempt. Raises ConfigError.
    """

    if kubeconfig is None and context is None:
        try:
            config.load_incluster_config()
            return client.ApiClient()
        except config.ConfigException:
            pass  # Not running inside a pod.

    try:
        return config.new_client_from_config(config_file=kubeconfig, context=context)
    except (config.ConfigException, OSError) as e:
        raise ConfigError(f"cannot load Kubernetes configuration: {e}") from e

def format_label_selector(selector) -> str:
    """Renders a V1LabelSelector in the string form accepted by `label_selector=`."""

    if selector is None:
        return ""

    parts = [(key, f"{key}={value}") for key, value in (selector.match_labels or {}).items()]

    for expr in selector.match_expressions or []:
        values = ",".join(sorted(expr.values or []))
        match expr.operator:
            case "In":
                parts.append((expr.key, f"{expr.key} in ({values})"))
            case "NotIn":
                parts.append((expr.key, f"{expr.key} notin ({values})"))
            case "Exists":
                parts.append((expr.key, expr.key))
            case "DoesNotExist":
                parts.append((expr.key, f"!{expr.key}"))
            case _:
                raise FatalError(f"unsupported label selector operator {expr.operator!r}")

    return ",".join(text for _, text in sorted(parts))

def translate_api_error(error, what) -> Exception:
    """Maps a client failure onto the kubescaler error taxonomy."""

    if isinstance(error, ApiException):
        message = f"{what}: {error.status} {error.reason}"
        if error.status == 404:
            return NotFoundError(message)
        if error.status == 409:
            return ConflictError(message)
        if error.status in (400, 422):
            return FatalError(message)
        return TransientError(message)

    return TransientError(f"{what}: {error}")

class KubernetesCluster(ClusterClient, MetricsClient):
    """
    Talks to Deployments, the metrics.k8s.io pod metrics and, in utilization mode, Pods.
    Blocking client calls run in a worker thread and carry their own request timeout.
    """

    def __init__(self,
                 api_client: Optional[client.ApiClient] = None,
                 request_timeout: float = DEFAULT_CALL_TIMEOUT,
                 metrics_mode: str = METRICS_MODE_ABSOLUTE,
                 apps_api=None,
                 core_api=None,
                 custom_api=None):
        self.request_timeout = request_timeout
        self.metrics_mode = metrics_mode

        self.apps_api = apps_api or client.AppsV1Api(api_client)
        self.core_api = core_api or client.CoreV1Api(api_client)
        self.custom_api = custom_api or client.CustomObjectsApi(api_client)

    @classmethod
    def from_config(cls, scaler_config):
        api_client = load_clients(scaler_config.kubeconfig, scaler_config.context)
        return cls(api_client, request_timeout=scaler_config.call_timeout, metrics_mode=scaler_config.metrics_mode)

    async def _call(self, what, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, _request_timeout=self.request_timeout, **kwargs)
        except (ApiException, urllib3.exceptions.HTTPError, OSError) as e:
            raise translate_api_error(e, what) from e

    async def get_workload_state(self, ref: WorkloadRef) -> ReplicaState:
        dep = await self._call(f"reading deployment {ref}", self.apps_api.read_namespaced_deployment, ref.name, ref.namespace)

        # An unset replica count means the API server default of 1.
        replicas = dep.spec.replicas if dep.spec.replicas is not None else 1
        return ReplicaState(replicas, dep.metadata.resource_version, format_label_selector(dep.spec.selector))

    async def update_workload_replicas(self, ref: WorkloadRef, resource_version: str, desired: int) -> None:
        # Carrying resourceVersion makes the API server reject the patch with 409 if the object moved on.
        body = {"metadata": {"resourceVersion": resource_version}, "spec": {"replicas": desired}}
        await self._call(f"scaling deployment {ref}", self.apps_api.patch_namespaced_deployment, ref.name, ref.namespace, body)

    async def list_instance_usage(self, namespace: str, selector: str) -> List[PerInstanceUsage]:
        try:
            metrics = await self._call(
                f"listing pod metrics in {namespace}",
                self.custom_api.list_namespaced_custom_object,
                METRICS_GROUP, METRICS_VERSION, namespace, METRICS_PLURAL,
                label_selector=selector,
            )
            requests = await self._pod_requests(namespace, selector) if self.metrics_mode == METRICS_MODE_UTILIZATION else {}
            return [self._usage(item, requests) for item in metrics.get("items", [])]
        except (NotFoundError, ConflictError, FatalError) as e:
            # A missing metrics API is as transient as an unreachable one.
            raise TransientError(str(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise TransientError(f"malformed pod metrics in {namespace}: {e!r}") from e

    async def _pod_requests(self, namespace, selector) -> Dict[str, Tuple[Optional[float], Optional[float]]]:
        pods = await self._call(f"listing pods in {namespace}", self.core_api.list_namespaced_pod, namespace, label_selector=selector)

        requests = {}
        for pod in pods.items:
            cpu = memory = None
            for container in pod.spec.containers or []:
                container_requests = (container.resources.requests if container.resources else None) or {}
                if "cpu" in container_requests:
                    cpu = (cpu or 0.0) + parse_cpu_millicores(container_requests["cpu"])
                if "memory" in container_requests:
                    memory = (memory or 0.0) + parse_memory_bytes(container_requests["memory"])
            requests[pod.metadata.name] = (cpu, memory)
        return requests

    @staticmethod
    def _usage(item, requests) -> PerInstanceUsage:
        name = item["metadata"]["name"]
        cpu = sum(parse_cpu_millicores(c["usage"]["cpu"]) for c in item.get("containers", []))
        memory = sum(parse_memory_bytes(c["usage"]["memory"]) for c in item.get("containers", []))
        cpu_request, memory_request = requests.get(name, (None, None))
        return PerInstanceUsage(name, cpu, memory, cpu_request, memory_request)
