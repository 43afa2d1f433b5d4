from setuptools import setup, find_packages

setup(
    name="focuswatch",
    version="0.1.0",
    description="Webcam focus/distraction time tracking against a remote classification service",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "opencv-python>=4.5.0",
        "python-socketio>=5.8.0",
        "aiohttp>=3.8.0",
        "rich>=12.5.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "focuswatch=focuswatch.main:main",
        ],
    },
)
