"""Shared fixtures: small trees of compiled classes on disk and in archives."""

import logging
from pathlib import Path

import pytest

from classfile_builder import (
    ACC_ABSTRACT,
    ACC_INTERFACE,
    ACC_PUBLIC,
    ACC_SUPER,
    ClassFileBuilder,
    make_archive,
    write_class,
)

INTERFACE = "com.example.SomeInterface"
ABSTRACT = "com.example.AbstractClass"
CONCRETE = "com.example.ConcreteClass"
MARKER = "com.example.Marker"


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handler changes made by the command line so caplog keeps working."""
    yield
    logger = logging.getLogger("classfinder")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def example_classes():
    return [
        ClassFileBuilder(INTERFACE, access=ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT),
        ClassFileBuilder(ABSTRACT, access=ACC_PUBLIC | ACC_SUPER | ACC_ABSTRACT)
        .implements(INTERFACE),
        ClassFileBuilder(CONCRETE, superclass=ABSTRACT),
        ClassFileBuilder("com.example.TestClass1").implements(INTERFACE),
    ]


def other_classes():
    return [
        ClassFileBuilder("com.example.other.TestClass2"),
        ClassFileBuilder("com.example.other.TestClass3"),
        ClassFileBuilder("com.example.other.Helper").annotate(MARKER),
        ClassFileBuilder("com.example.other.Widget", superclass=CONCRETE),
    ]


@pytest.fixture
def classes_dir(tmp_path) -> Path:
    """Directory with the com.example classes."""
    root = tmp_path / "classes"
    for builder in example_classes():
        write_class(root, builder)
    return root


@pytest.fixture
def other_dir(tmp_path) -> Path:
    """Directory with the com.example.other classes."""
    root = tmp_path / "other"
    for builder in other_classes():
        write_class(root, builder)
    return root


@pytest.fixture
def zipped_class():
    return ClassFileBuilder("com.example.zipped.TestInZip")


@pytest.fixture
def zip_file(tmp_path, zipped_class) -> Path:
    return make_archive(tmp_path / "archives" / "classes.zip", [zipped_class])


@pytest.fixture
def jar_file(tmp_path, zipped_class) -> Path:
    return make_archive(tmp_path / "archives" / "classes.jar", [zipped_class])
