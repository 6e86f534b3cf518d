"""Setup configuration for whgateway package."""

from pathlib import Path
from setuptools import setup, find_packages

# Read version from __version__.py
version_file = Path(__file__).parent / "whgateway" / "__version__.py"
version_info = {}
with open(version_file) as f:
    exec(f.read(), version_info)

# Read README
readme_file = Path(__file__).parent / "README.md"
with open(readme_file, encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="whgateway",
    version=version_info["__version__"],
    description="Relay WhatsApp Cloud API message webhooks to an OAuth2-protected endpoint",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        # Web Framework
        "fastapi>=0.104.1",
        "uvicorn[standard]>=0.30.0,<1.0.0",
        # Data Validation
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        # CLI
        "typer>=0.12.0",
        "rich>=13.7.0",
        # Utilities
        "python-dotenv>=1.0.0",
        "httpx>=0.25.2",
        # Observability
        "prometheus-client>=0.19.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
            "pytest-cov>=4.1.0",
            "black>=23.12.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",
            "isort>=5.13.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "whgateway=whgateway.cli.main:app",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
        "Operating System :: OS Independent",
    ],
    keywords=[
        "whatsapp",
        "webhook",
        "gateway",
        "oauth2",
        "fastapi",
    ],
    include_package_data=True,
    zip_safe=False,
)
