from setuptools import setup, find_packages

setup(
    name="sqlite-iotest",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "flask",
        "werkzeug",
        "prometheus-client",
        "python-json-logger>=3.1",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    python_requires=">=3.9",
)
