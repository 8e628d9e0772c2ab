from setuptools import setup, find_packages

setup(
    name='grounded-modkit',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'rich',
        'platformdirs',
        'semver>=3.0',
    ],
    extras_require={
        'test': [
            'pytest<9.1',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'grounded-modkit=grounded_modkit.cli:main',
        ],
    },
)
