"""
setup.py - Package Installation Configuration
==============================================
"""

from setuptools import setup
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text()
else:
    long_description = "Generic best-first Branch & Bound search engine"

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
if requirements_file.exists():
    with open(requirements_file) as f:
        requirements = [line.strip() for line in f
                       if line.strip() and not line.startswith('#')]
else:
    requirements = [
        'numpy>=1.21.0',
        'psutil>=5.8.0',
        'PyYAML>=5.4.0',
    ]

setup(
    name='branch-bound-engine',
    version='1.0.0',
    author='Branch & Bound Team',
    description='A generic best-first Branch & Bound search engine with example problems',
    long_description=long_description,
    long_description_content_type='text/markdown',
    py_modules=[
        'bb_bounding_functions',
        'bb_incumbent',
        'bb_parallel',
        'bb_problem',
        'bb_search_limits',
        'bb_search_strategies',
        'bb_search_tree',
        'brute_force',
        'config',
        'demo_instances',
        'assignment_problem',
        'facility_location_problem',
        'knapsack_problem',
        'nqueens_problem',
        'tsp_problem',
        'main',
        'utils',
    ],
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Mathematics',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={
        'test': [
            'pytest>=6.2.0',
        ],
        'dev': [
            'pytest>=6.2.0',
            'black>=21.6b0',
            'flake8>=3.9.0',
            'mypy>=0.910',
            'coverage>=5.5',
        ],
    },
    entry_points={
        'console_scripts': [
            'bb-solve=main:main',
        ],
    },
    zip_safe=False,
)
