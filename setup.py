from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).resolve().parent
PACKAGE = "ktutimetable"


def _lines(name: str) -> list[str]:
    """
    Requirement lines of a file next to setup.py, without comments and "-r" includes.
    """
    path = HERE / name
    if not path.is_file():
        return []
    stripped = (line.strip() for line in path.read_text(encoding="utf-8").splitlines())
    return [line for line in stripped if line and not line.startswith(("#", "-r"))]


setup(
    name=PACKAGE,
    version=(HERE / PACKAGE / "VERSION").read_text(encoding="utf-8").strip(),
    description="KTU Timetable – week grid viewer for KTU iCalendar schedules (window + terminal)",
    long_description=(HERE / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    python_requires=">=3.9",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={PACKAGE: ["VERSION"]},
    install_requires=_lines("requirements.txt"),
    extras_require={"dev": _lines("requirements-dev.txt")},
    entry_points={"console_scripts": [f"{PACKAGE}=ktutimetable.cli:main"]},
)
