from setuptools import setup, find_packages
from pathlib import Path

here = Path(__file__).parent
long_description = (here / "README.md").read_text(encoding="utf-8")

setup(
    name="android-bounty-hunter",
    version="0.1.0",
    description="Extracts Android APK and device artifacts and scans them for secrets and endpoints",
    long_description=long_description,
    long_description_content_type="text/markdown",

    packages=find_packages(exclude=["tests*", "examples*", "docs*"]),
    include_package_data=True,
    python_requires=">=3.10",

    install_requires=[
        "androguard>=4.1.0",
        "pydantic>=2.6.0",
    ],

    extras_require={
        "test": ["pytest>=7.0"],
    },

    entry_points={
        "console_scripts": [
            "android-bounty-hunter=bounty_hunter.main:main"
        ]
    },

    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Intended Audience :: Developers",
        "Topic :: Security",
    ],

    keywords="android apk secrets endpoints jadx mobsf adb bug-bounty",
    license="MIT",
)
