from setuptools import setup, find_packages

setup(
    name="quizmaster",
    version="0.1.0",
    description="Self-quiz trainer for multiple-choice question documents",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "PyYAML>=6.0",
        "python-docx>=1.1.0",
        "lxml>=4.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quizmaster=quizmaster.trainer:main",
        ],
    },
)
