"""Port manifest model and feature-set resolution."""

from .features import resolve_feature_set, unsupported_features
from .models import DictPackageLookup, Dependency, FeatureDescriptor, PackageLookup, SourceControlFile

__all__ = [
    "DictPackageLookup",
    "Dependency",
    "FeatureDescriptor",
    "PackageLookup",
    "SourceControlFile",
    "resolve_feature_set",
    "unsupported_features",
]
