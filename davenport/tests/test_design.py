# -*- coding: utf-8 -*-

import json
import logging
import unittest

from davenport import client, design
from davenport.tests.testutil import BASE_URL, FakeSession


BY_FOO = design.ViewDefinition('by-foo', 'function (doc) { emit(doc.foo, doc); }')
OVER_TEN = design.ViewDefinition(
    'only-foos-greater-than-10',
    'function (doc) { if (doc.foo > 10) { emit(doc._id, doc); } }',
    '_count',
)
LIST = design.DesignDocConfiguration('list', [BY_FOO, OVER_TEN])


class ViewDefinitionTestCase(unittest.TestCase):

    def test_json(self):
        self.assertEqual(BY_FOO.json(), {'map': BY_FOO.map})
        self.assertEqual(OVER_TEN.json(), {'map': OVER_TEN.map, 'reduce': '_count'})

    def test_matches_is_exact(self):
        self.assertTrue(OVER_TEN.matches({'map': OVER_TEN.map, 'reduce': '_count'}))
        self.assertFalse(OVER_TEN.matches({'map': OVER_TEN.map, 'reduce': '_sum'}))
        self.assertFalse(OVER_TEN.matches({'map': OVER_TEN.map}))
        self.assertFalse(BY_FOO.matches({'map': BY_FOO.map + ' '}))
        self.assertFalse(BY_FOO.matches({'map': BY_FOO.map, 'reduce': '_count'}))
        self.assertFalse(BY_FOO.matches(None))

    def test_generic_list_view(self):
        self.assertEqual(design.GENERIC_LIST_VIEW.name, 'all')
        self.assertEqual(design.GENERIC_LIST_VIEW.reduce, '_count')


class MergeViewsTestCase(unittest.TestCase):

    def test_keeps_views_absent_from_configuration(self):
        doc = {'_id': '_design/list', 'views': {'a': {'map': 'function (doc) {}'}}}
        dirty = design.merge_views(doc, [BY_FOO])
        self.assertEqual(dirty, ['by-foo'])
        self.assertEqual(set(doc['views']), set(['a', 'by-foo']))

    def test_nothing_dirty(self):
        doc = {'views': {'by-foo': BY_FOO.json()}}
        self.assertEqual(design.merge_views(doc, [BY_FOO]), [])

    def test_missing_views_map(self):
        doc = {'_id': '_design/list'}
        self.assertEqual(design.merge_views(doc, [BY_FOO]), ['by-foo'])
        self.assertEqual(doc['views'], {'by-foo': BY_FOO.json()})


class SyncDesignDocTestCase(unittest.TestCase):

    path = 'tests/_design/list'

    def setUp(self):
        self.session = FakeSession()
        self.db = client.Database(BASE_URL, 'tests', session=self.session)

    def written(self):
        return [c.kwargs['json'] for c in self.session.calls_to('PUT', self.path)]

    def test_creates_missing_design_doc(self):
        self.session.add('PUT', self.path, 201, {'ok': True, 'id': '_design/list', 'rev': '1-a'})
        self.assertTrue(design.sync_design_doc(self.db, LIST))
        self.assertEqual(self.written(), [{
            '_id': '_design/list',
            'language': 'javascript',
            'views': {
                'by-foo': {'map': BY_FOO.map},
                'only-foos-greater-than-10': {'map': OVER_TEN.map, 'reduce': '_count'},
            },
        }])

    def test_up_to_date_design_doc_is_not_written(self):
        self.session.add('GET', self.path, 200, {
            '_id': '_design/list', '_rev': '3-c', 'language': 'javascript',
            'views': {'by-foo': BY_FOO.json(), 'only-foos-greater-than-10': OVER_TEN.json()},
        })
        self.assertFalse(design.sync_design_doc(self.db, LIST))
        self.assertEqual(self.written(), [])

    def test_second_run_is_idempotent(self):
        stored = {}

        self.session.add('PUT', self.path, 201, {'ok': True, 'id': '_design/list', 'rev': '1-a'})
        self.assertTrue(design.sync_design_doc(self.db, LIST))
        stored.update(json.loads(json.dumps(self.written()[0])))
        stored['_rev'] = '1-a'

        self.session.add('GET', self.path, 200, stored)
        self.assertFalse(design.sync_design_doc(self.db, LIST))
        self.assertEqual(len(self.written()), 1)

    def test_update_keeps_existing_views_and_rev(self):
        self.session.add('GET', self.path, 200, {
            '_id': '_design/list', '_rev': '2-b', 'language': 'javascript',
            'views': {
                'legacy': {'map': 'function (doc) { emit(null, 1); }'},
                'by-foo': {'map': 'function (doc) { emit(doc.bar, doc); }'},
            },
        })
        self.session.add('PUT', self.path, 201, {'ok': True, 'id': '_design/list', 'rev': '3-c'})
        self.assertTrue(design.sync_design_doc(self.db, LIST))
        doc = self.written()[0]
        self.assertEqual(doc['_rev'], '2-b')
        self.assertEqual(set(doc['views']), set(['legacy', 'by-foo', 'only-foos-greater-than-10']))
        self.assertEqual(doc['views']['by-foo'], {'map': BY_FOO.map})

    def test_fetch_failure_skips(self):
        self.session.add('GET', self.path, 500, {'error': 'unknown_error'})
        with self.assertLogs('davenport.design', logging.WARNING) as logs:
            self.assertFalse(design.sync_design_doc(self.db, LIST))
        self.assertIn('Failed to retrieve design doc "list"', logs.output[0])
        self.assertEqual(self.written(), [])

    def test_write_failure_is_logged_not_retried(self):
        self.session.add('PUT', self.path, 409, {'error': 'conflict'})
        with self.assertLogs('davenport.design', logging.WARNING) as logs:
            self.assertFalse(design.sync_design_doc(self.db, LIST))
        self.assertIn('Could not create or update design doc "list"', logs.output[0])
        self.assertEqual(len(self.written()), 1)


class SyncDesignDocsTestCase(unittest.TestCase):

    def setUp(self):
        self.session = FakeSession()
        self.db = client.Database(BASE_URL, 'tests', session=self.session)

    def test_all_design_docs_are_synced(self):
        other = design.DesignDocConfiguration('other', [design.GENERIC_LIST_VIEW])
        broken = design.DesignDocConfiguration('broken', [BY_FOO])
        self.session.add('PUT', 'tests/_design/list', 201, {'ok': True})
        self.session.add('PUT', 'tests/_design/other', 201, {'ok': True})
        self.session.add('GET', 'tests/_design/broken', 401, {'error': 'unauthorized'})

        with self.assertLogs('davenport.design', logging.WARNING):
            result = design.sync_design_docs(self.db, [LIST, other, broken])

        self.assertEqual(result, {'list': True, 'other': True, 'broken': False})
        self.assertEqual(len(self.session.calls_to('PUT')), 2)

    def test_nothing_configured(self):
        self.assertEqual(design.sync_design_docs(self.db, []), {})
        self.assertEqual(design.sync_design_docs(self.db, None), {})
        self.assertEqual(self.session.calls, [])
