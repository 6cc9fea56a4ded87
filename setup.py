from setuptools import setup, find_namespace_packages

setup(
    name="bootc-provider",
    version="0.1.0",
    description="Declarative bootc_image resource building qcow2 disk images from bootc container images",
    license="Apache-2.0",
    python_requires=">=3.8",
    packages=find_namespace_packages(where="src", include=["bootc_provider", "bootc_provider.*"]),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "python-dotenv>=1.0",
        "jinja2>=3.0",
        "structlog>=22.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "black>=23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bootc-provider=bootc_provider.CLI.main:main",
        ],
    },
)
