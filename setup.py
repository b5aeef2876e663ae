"""Setup script for usadel_1d package."""

from setuptools import setup, find_packages

setup(
    name='usadel_1d',
    version='1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={'usadel_1d.config': ['defaults.yaml']},
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.20.0',
        'scipy>=1.9.0',
        'pyyaml>=5.4',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': ['usadel-1d=usadel_1d.solver.api:main'],
    },
)
