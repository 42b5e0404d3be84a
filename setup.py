from setuptools import setup, find_packages

setup(
    name="stereograph_generator",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        'streamlit',
        'opencv-python',
        'numpy',
        'pyyaml',
        'httpx',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'stereograph=stereograph.main:main',
        ],
    },
)
