from __future__ import annotations

from pathlib import Path

from setuptools import find_namespace_packages, setup  # type: ignore[import-untyped]

ROOT = Path(__file__).parent


def _read_requirements(name: str = "requirements.txt") -> list[str]:
    requirements_path = ROOT / name
    if not requirements_path.exists():
        return []
    lines = requirements_path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


setup(
    name="hitekchat",
    version="0.1.0",
    description="0xHiTek terminal chat client and chat-storage service",
    python_requires=">=3.11",
    packages=find_namespace_packages(include=("client", "config", "llm", "server*", "shared")),
    include_package_data=True,
    install_requires=_read_requirements(),
    extras_require={"test": _read_requirements("requirements-dev.txt")},
    entry_points={
        "console_scripts": [
            "hitekchat=client.cli:main",
            "hitekchat-storage=server.http.app:main",
        ]
    },
)
