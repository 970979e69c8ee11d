#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

from setuptools import setup

setup(
    name='Davenport',
    version='0.5.0',
    description='Python client for CouchDB databases, indexes and views',
    long_description="""
    This is a Python library for CouchDB. It wraps the document, bulk, mango
    and view APIs of one database, and can create the database, its index and
    its design documents on startup.""",
    license = 'BSD',
    classifiers = [
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Database :: Front-Ends',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    packages = ['davenport', 'davenport.tests'],
    python_requires='>=3.7',
    install_requires=[
        "furl",
        "requests",
        "requests_toolbelt",
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
)
