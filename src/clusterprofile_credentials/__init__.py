"""Cluster-profile credential plugins.

Exec-credential plugins that resolve a cluster endpoint to a bearer token from
ClusterProfile-backed Secrets or from Amazon EKS.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
