from unittest import TestCase
from unittest.mock import MagicMock, Mock, patch

import requests
from pykube.exceptions import HTTPError

from kubepreload.constants import PRELOAD_NAMESPACE, PRELOAD_NAMESPACE_SELECTOR
from kubepreload.exception import NamespaceCreateError, CleanupError, FatalError
from kubepreload.namespaces import build_namespace_manifest, create_staging_namespace, cleanup_staging_namespaces


def _namespace(name):
    namespace = MagicMock()
    namespace.name = name
    return namespace


class StagingNamespaceTestCase(TestCase):

    def test_manifest_marker_wins(self):
        labels = {'kube-burner-preload': 'false', 'team': 'perf'}
        manifest = build_namespace_manifest(labels=labels, annotations={'owner': 'me'})

        self.assertEqual(PRELOAD_NAMESPACE, manifest['metadata']['name'])
        self.assertEqual({'kube-burner-preload': 'true', 'team': 'perf'}, manifest['metadata']['labels'])
        self.assertEqual({'owner': 'me'}, manifest['metadata']['annotations'])

    def test_manifest_defaults(self):
        manifest = build_namespace_manifest()

        self.assertEqual({'kube-burner-preload': 'true'}, manifest['metadata']['labels'])
        self.assertEqual({}, manifest['metadata']['annotations'])

    def test_manifest_does_not_modify_arguments(self):
        labels = {'team': 'perf'}
        build_namespace_manifest(labels=labels)
        self.assertEqual({'team': 'perf'}, labels)

    @patch('pykube.Namespace')
    def test_create(self, namespace_class):
        api = Mock()
        namespace = create_staging_namespace(api, labels={'team': 'perf'}, annotations={'owner': 'me'})

        namespace_class.assert_called_once_with(api, build_namespace_manifest(labels={'team': 'perf'},
                                                                              annotations={'owner': 'me'}))
        namespace_class.return_value.create.assert_called_once_with()
        self.assertIs(namespace_class.return_value, namespace)

    @patch('pykube.Namespace')
    def test_create_failure_is_fatal(self, namespace_class):
        namespace_class.return_value.create.side_effect = HTTPError(409, 'namespaces "preload-kube-burner" already exists')

        with self.assertRaises(NamespaceCreateError) as context:
            create_staging_namespace(Mock())
        self.assertIsInstance(context.exception, FatalError)
        self.assertEqual(1, namespace_class.return_value.create.call_count)

    @patch('pykube.Namespace')
    def test_create_connection_failure(self, namespace_class):
        namespace_class.return_value.create.side_effect = requests.ConnectionError('connection refused')

        self.assertRaises(NamespaceCreateError, create_staging_namespace, Mock())


class CleanupStagingNamespacesTestCase(TestCase):

    @patch('pykube.Namespace')
    def test_deletes_all_matching_namespaces(self, namespace_class):
        # One of them wasn't created by us but carries the marker, too
        ours, other = _namespace(PRELOAD_NAMESPACE), _namespace('preload-other-run')
        query = namespace_class.objects.return_value.filter
        query.side_effect = [[ours, other], [other], []]
        sleep = Mock()

        deleted = cleanup_staging_namespaces(Mock(), sleep=sleep)

        self.assertEqual([PRELOAD_NAMESPACE, 'preload-other-run'], deleted)
        ours.delete.assert_called_once_with()
        other.delete.assert_called_once_with()
        for call in query.call_args_list:
            self.assertEqual({'selector': PRELOAD_NAMESPACE_SELECTOR}, call.kwargs)
        self.assertEqual(1, sleep.call_count)

    @patch('pykube.Namespace')
    def test_selector_is_only_the_marker(self, namespace_class):
        namespace_class.objects.return_value.filter.return_value = []

        cleanup_staging_namespaces(Mock())

        namespace_class.objects.return_value.filter.assert_called_once_with(selector='kube-burner-preload=true')

    @patch('pykube.Namespace')
    def test_nothing_to_delete(self, namespace_class):
        namespace_class.objects.return_value.filter.return_value = []
        sleep = Mock()

        self.assertEqual([], cleanup_staging_namespaces(Mock(), sleep=sleep))
        sleep.assert_not_called()

    @patch('pykube.Namespace')
    def test_ignores_namespaces_appearing_later(self, namespace_class):
        ours, newcomer = _namespace(PRELOAD_NAMESPACE), _namespace('preload-newcomer')
        namespace_class.objects.return_value.filter.side_effect = [[ours], [newcomer]]

        self.assertEqual([PRELOAD_NAMESPACE], cleanup_staging_namespaces(Mock(), sleep=Mock()))
        newcomer.delete.assert_not_called()

    @patch('pykube.Namespace')
    def test_timeout(self, namespace_class):
        ours = _namespace(PRELOAD_NAMESPACE)
        namespace_class.objects.return_value.filter.return_value = [ours]

        with self.assertRaises(CleanupError):
            cleanup_staging_namespaces(Mock(), timeout=0, sleep=Mock())

    @patch('pykube.Namespace')
    def test_delete_failure(self, namespace_class):
        ours = _namespace(PRELOAD_NAMESPACE)
        ours.delete.side_effect = HTTPError(403, 'forbidden')
        namespace_class.objects.return_value.filter.return_value = [ours]

        with self.assertRaises(CleanupError) as context:
            cleanup_staging_namespaces(Mock(), sleep=Mock())
        self.assertNotIsInstance(context.exception, FatalError)
        ours.delete.assert_called_once_with()

    @patch('pykube.Namespace')
    def test_already_deleted_namespace(self, namespace_class):
        gone, leftover = _namespace('preload-gone'), _namespace(PRELOAD_NAMESPACE)
        gone.delete.side_effect = HTTPError(404, 'namespaces "preload-gone" not found')
        namespace_class.objects.return_value.filter.side_effect = [[gone, leftover], []]

        self.assertEqual(['preload-gone', PRELOAD_NAMESPACE], cleanup_staging_namespaces(Mock(), sleep=Mock()))
        leftover.delete.assert_called_once_with()

    @patch('pykube.Namespace')
    def test_delete_failure_continues_with_other_namespaces(self, namespace_class):
        forbidden, broken, ours = _namespace('preload-forbidden'), _namespace('preload-broken'), _namespace(
            PRELOAD_NAMESPACE)
        forbidden.delete.side_effect = HTTPError(403, 'forbidden')
        broken.delete.side_effect = requests.ConnectionError('connection reset')
        namespace_class.objects.return_value.filter.return_value = [forbidden, broken, ours]

        with self.assertRaises(CleanupError) as context:
            cleanup_staging_namespaces(Mock(), sleep=Mock())
        ours.delete.assert_called_once_with()
        self.assertIn('preload-forbidden', str(context.exception))
        self.assertIn('preload-broken', str(context.exception))

    @patch('pykube.Namespace')
    def test_list_failure(self, namespace_class):
        namespace_class.objects.return_value.filter.side_effect = requests.ConnectionError('connection refused')

        self.assertRaises(CleanupError, cleanup_staging_namespaces, Mock(), sleep=Mock())
