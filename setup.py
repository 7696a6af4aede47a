__author__ = 'EUROCONTROL (SWIM)'

import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="xjconv",
    version="0.1.0",
    author="EUROCONTROL (SWIM)",
    description="Convert XML documents to JSON and back through a format neutral node tree",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    package_data={'xjconv': ['schemas/*.json']},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.7',
    install_requires=[
        'jsonschema>=3.2.0',
        'pyparsing>=3.0.0'
    ],
    extras_require={
        'test': ['pytest']
    }
)
