from setuptools import setup, find_packages

setup(
    name="clipcut",
    version="0.1.0",
    packages=find_packages(include=["clipcut", "clipcut.*"]),
    install_requires=[
        "ffmpeg-python",
        "rich>=13.0.0",  # Explicit minimum version
        "psutil",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "clipcut=clipcut.__main__:main",
        ],
    },
    python_requires=">=3.8",
)
