from setuptools import setup, find_packages
import os

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

version = os.environ.get("HAZELCAST_PICKER_VERSION", "0.1.0")

setup(
    name="hazelcast-address-picker",
    version=version,
    author="Hazelcast, Inc.",
    author_email="info@hazelcast.com",
    description="Bind and public address selection for Hazelcast cluster members",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: System :: Networking",
        "Topic :: System :: Distributed Computing",
        "Typing :: Typed",
    ],
    keywords=[
        "hazelcast",
        "distributed",
        "cluster",
        "network",
        "interfaces",
        "bind-address",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0",
        "psutil>=5.9.3",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-timeout>=2.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
            "flake8>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "hazelcast-pick-address=hazelcast_picker.cli:main",
        ],
    },
    package_data={
        "hazelcast_picker": ["py.typed"],
    },
    include_package_data=True,
    zip_safe=False,
)
