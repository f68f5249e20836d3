#!/usr/bin/env python3
"""
Setup configuration for spot-lyrics
Download synced Spotify lyrics as .lrc files using the web-player session
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "spotipy>=2.23.0",
    "requests>=2.31.0",
    "yt-dlp>=2023.12.30",
    "rich-click>=1.7.0",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
    "python-dotenv>=1.0.0",
]

setup(
    name="spot-lyrics",
    version="0.1.0",
    author="spot-lyrics",
    description="Download synced Spotify lyrics as .lrc files with an sp_dc web session",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["spot_lyrics", "spot_lyrics.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "test": [
            "pytest>=7.4.3",
            "pyotp>=2.9.0",
        ],
        "dev": [
            "pytest>=7.4.3",
            "pyotp>=2.9.0",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "spot-lyrics=spot_lyrics.cli:main",
        ],
    },
    keywords="spotify lyrics lrc synced cli",
)
