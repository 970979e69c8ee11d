# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

from davenport import exceptions
from davenport.bootstrap import DatabaseConfiguration, configure_database
from davenport.client import Database, Document, Server
from davenport.design import GENERIC_LIST_VIEW, DesignDocConfiguration, ViewDefinition
from davenport.exceptions import DatabaseError, is_davenport_error
from davenport.session import Session, is_success
from davenport.views import BulkFailure, BulkSuccess, Revision, Row, ViewResult

__version__ = '0.5.0'
