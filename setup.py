#!/usr/bin/env python
"""
AsmScore evaluates de novo assemblies contig by contig.
It combines sequence, read mapping and reference evidence into contig scores,
an assembly score and the score cutoff that gives the best subset of contigs.
"""

from setuptools import setup

version = open('VERSION.txt').read().strip()

print("""-----------------------------------
 Installing AsmScore version {}
-----------------------------------
""".format(version))

setup(
    name='asmscore',
    version=version,
    description="Contig quality scoring of de novo assemblies",
    long_description=__doc__,
    keywords=['bioinformatics', 'transcriptome assembly', 'genome assembly'],
    license='GPLv2',

    packages=['asmscore_libs'],
    package_dir={'asmscore_libs': 'asmscore_libs'},
    include_package_data=True,

    zip_safe=False,
    scripts=['asmscore.py'],
    install_requires=[
        'matplotlib',
        'joblib',
        'simplejson',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Environment :: Console',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: GNU General Public License v2 (GPLv2)',
        'Natural Language :: English',
        'Operating System :: MacOS :: MacOS X',
        'Operating System :: POSIX',
        'Operating System :: Unix',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
    ],
)

print("""
--------------------------------
 AsmScore installation complete!
--------------------------------
For help in running AsmScore, run: asmscore.py --help
""")
