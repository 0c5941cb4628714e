from setuptools import setup, find_packages

setup(
    name="clockboundc",
    version="0.1.0",
    description="Client for clockboundd: current time with a guaranteed clock error bound",
    author="phisanti",
    author_email="tisalon@outlook.com",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "clockboundc=clockboundc.main:clockboundc",
            "clockboundc-now=clockboundc.main:clockboundc_now",
        ],
    },
    python_requires=">=3.10",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
