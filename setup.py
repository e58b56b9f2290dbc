from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

with open("requirements.txt", "r") as fh:
    reqs = fh.read()

setup(
    name="dcmframes",
    version="0.3.0",
    description="Resolve DICOM attributes and decode frames of multi-frame and compressed objects.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=reqs,
    package_dir={"": "src"},
    packages=find_packages("src"),
    extras_require={
        "test": ["pytest>=8.0", "pytest-mock"],
        "codecs": ["pylibjpeg[all]", "pillow"],
    },
    entry_points={"console_scripts": ["dcmframes = dcmframes.cli.__main__:cli"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: Apache Software License",
        "Development Status :: 3 - Alpha",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
    python_requires=">=3.10",
)
