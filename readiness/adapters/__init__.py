"""Thin adapters for ArgoCD, Jenkins, GitHub and Confluence.

They only fetch and normalize; every decision is made by the checks.
"""
from readiness.adapters.argocd import ArgoCdAdapter
from readiness.adapters.base import (
    AdapterSet,
    ArgoAppState,
    ConfluencePage,
    HelmChartState,
    JenkinsBuild,
    PullRequestState,
)
from readiness.adapters.confluence import ConfluenceAdapter
from readiness.adapters.github import GitHubAdapter
from readiness.adapters.http import HttpClient
from readiness.adapters.jenkins import JenkinsAdapter

__all__ = [
    "AdapterSet",
    "ArgoAppState",
    "ArgoCdAdapter",
    "ConfluenceAdapter",
    "ConfluencePage",
    "GitHubAdapter",
    "HelmChartState",
    "HttpClient",
    "JenkinsAdapter",
    "JenkinsBuild",
    "PullRequestState",
]
