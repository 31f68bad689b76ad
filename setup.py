from setuptools import setup, find_packages

setup(
    name="planit-deploy",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "tenacity>=8.0",
        "python-dotenv>=1.0",
        "jinja2>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "planit-start=planit_deploy.CLI.main:main",
            "planit-stop=planit_deploy.CLI.main:stop_main",
        ],
    },
)
