from setuptools import setup, find_packages

setup(
    name="kubescaler",
    version="0.1.0",
    description="Threshold-based replica autoscaler for Kubernetes deployments",
    packages=find_packages(include=["kubescaler", "kubescaler.*"]),
    python_requires=">=3.10",
    install_requires=[
        "async-timeout==5.0.1",
        "kubernetes==31.0.0",
        "python-dotenv==1.0.1",
        "PyYAML==6.0.2",
        "urllib3==2.2.3",
    ],
    extras_require={
        "test": [
            "pytest==8.3.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "kubescaler=kubescaler.cli:main",
        ],
    },
)
