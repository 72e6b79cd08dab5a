from .base import ClusterClient, MetricsClient
from .k8s import KubernetesCluster, format_label_selector, load_clients

__all__ = ["ClusterClient", "MetricsClient", "KubernetesCluster", "format_label_selector", "load_clients"]
