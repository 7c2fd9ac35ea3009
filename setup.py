#!/usr/bin/env python

from setuptools import setup

setup(
    name="mediavault",
    version="0.1.0",
    description="API for browsing and managing media in S3-compatible object storage",
    packages=["mediavault", "mediavault.api", "mediavault.objectstorage", "mediavault.operations"],
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    keywords=["API", "S3", "media"],
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Internet :: WWW/HTTP",
    ],
    install_requires=[
        "fastapi[all]",
        "python-multipart",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "typing_extensions",
        "uvicorn",
        "aiobotocore",
        "types-aiobotocore-s3",
        "async-lru",
    ],
    extras_require={
        "dev": [
            "pytest",
            "anyio",
            "httpx",
            "requests",
            "mypy",
            "flake8",
            "pre-commit",
        ]
    },
    entry_points={"console_scripts": ["mediavault = mediavault.__main__:main"]},
)
