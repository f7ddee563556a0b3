from depsched.graph.resolver import DependencyResolver

__all__ = ["DependencyResolver"]
