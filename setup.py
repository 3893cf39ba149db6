"""Setup script for the Hearthboard household calendar dashboard."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements, separating test dependencies
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
dev_requirements = []

if requirements_file.exists():
    for line in requirements_file.read_text().strip().split("\n"):
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        if "pytest" in line:
            dev_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="hearthboard",
    version="1.0.0",
    description="Household calendar dashboard: merges ICS feeds and weather for a kiosk display",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Hearthboard Team",
    # Package configuration
    packages=find_packages(include=["hearthboard", "hearthboard.*", "kiosk_ui", "kiosk_ui.*"]),
    include_package_data=True,
    # Dependencies
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
        "test": dev_requirements,
    },
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Environment :: Web Environment",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Scheduling",
        "Framework :: AsyncIO",
    ],
    keywords="calendar ics icalendar dashboard kiosk raspberry-pi weather async",
    entry_points={
        "console_scripts": [
            "hearthboard=hearthboard.__main__:main",
            "hearthboard-kiosk=kiosk_ui.__main__:main",
        ],
    },
    zip_safe=False,
    platforms=["linux", "macos"],
)
