"""Superclass and interface closure over a finished class registry."""

from typing import Dict, Mapping, Optional, Set

from .types import ClassInfo


class ClassHierarchyResolver:
    """
    Resolves ancestor classes and implemented interfaces of a class.

    Only classes present in the bound registry take part; a link to a name
    outside it (a JDK class, a library that was not searched) ends that
    branch of the walk. Both walks carry a visited set so that a class
    declaring itself as its own ancestor cannot loop forever.
    """

    def __init__(self, classes: Mapping[str, ClassInfo]):
        self.classes = classes

    def find_all_superclasses(self, info: ClassInfo) -> Dict[str, ClassInfo]:
        """
        Find every superclass of ``info`` known to the registry.

        Args:
            info: Class to start from

        Returns:
            Superclasses keyed by name, nearest first
        """
        superclasses: Dict[str, ClassInfo] = {}
        visited = {info.name}
        current: Optional[ClassInfo] = info

        while current is not None:
            name = current.superclass_name
            if name is None or name in visited:
                break
            parent = self.classes.get(name)
            if parent is None:
                break
            visited.add(name)
            superclasses[name] = parent
            current = parent

        return superclasses

    def find_all_interfaces(self, info: ClassInfo) -> Dict[str, ClassInfo]:
        """
        Find every interface ``info`` implements, directly or through its
        superclasses and superinterfaces.

        Args:
            info: Class to start from

        Returns:
            Interfaces keyed by name
        """
        interfaces: Dict[str, ClassInfo] = {}
        self._collect_interfaces(info, interfaces, {info.name})
        interfaces.pop(info.name, None)
        return interfaces

    def _collect_interfaces(self, info: ClassInfo,
                            interfaces: Dict[str, ClassInfo],
                            visited: Set[str]) -> None:
        superclass_name = info.superclass_name
        if superclass_name is not None and superclass_name not in visited:
            superclass = self.classes.get(superclass_name)
            if superclass is not None:
                visited.add(superclass_name)
                self._collect_interfaces(superclass, interfaces, visited)

        for interface_name in info.interfaces:
            if interface_name in visited:
                continue
            interface = self.classes.get(interface_name)
            if interface is None:
                continue
            visited.add(interface_name)
            interfaces[interface_name] = interface
            self._collect_interfaces(interface, interfaces, visited)

    def all_superclasses(self, info: ClassInfo) -> Set[ClassInfo]:
        return set(self.find_all_superclasses(info).values())

    def all_interfaces(self, info: ClassInfo) -> Set[ClassInfo]:
        return set(self.find_all_interfaces(info).values())

    def is_subclass_of(self, info: ClassInfo, name: str) -> bool:
        """Check whether ``name`` is a known superclass or interface of ``info``."""
        return (name in self.find_all_superclasses(info)
                or name in self.find_all_interfaces(info))
