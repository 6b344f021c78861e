from setuptools import setup, find_packages

setup(
    name             = 'tokenbridge',
    version          = '1.0.0',
    description      = 'tokenbridge — short-lived OpenAPI tokens, server-side calls and backend proxy for a paginated data service',
    packages         = find_packages(exclude=['tests*']),
    install_requires = open('requirements.txt').read().splitlines(),
    extras_require   = {
        'test': ['pytest>=7.0', 'httpx>=0.24'],
    },
    entry_points     = {
        'console_scripts': [
            'tokenbridge = tokenbridge.cli:main',
        ],
    },
    python_requires  = '>=3.10',
    classifiers      = [
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)
