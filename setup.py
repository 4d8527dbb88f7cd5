from setuptools import setup, find_packages

setup(
    name='nethost-fetch',
    version='0.1.0',
    description='Resolve the .NET nethost native library from the NuGet registry',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.8',
    install_requires=[
        'requests',
        'PyYAML',
        'platformdirs',
        'rich',
        'semantic_version>=2.10',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'nethost-fetch=nethost_fetch.cli:main',
        ],
    },
)
