from setuptools import setup, find_packages


setup(
    name="zzk",
    version="0.1",
    packages=find_packages(include=["zzk", "zzk.*"]),
    description="A minimal append-only chunk archive format for durable logging of text and binary blobs.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "zzk=zzk.cli:main",
        ]
    },
)
