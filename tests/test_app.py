"""
Cluster Health Dashboard API Tests
==================================
Validates the upload endpoint, probes, static serving and error responses.
"""

import json
import os
import shutil
import tempfile
import unittest
from io import BytesIO
from unittest.mock import patch

from app import app
from config_logging import AppConfig
from report_summary import routes
from conftest import build_report, marker_block, RED, GREEN


def _sample_report() -> bytes:
    return build_report([
        marker_block('KubeadminUser', RED, 'kubeadmin account still present'),
        marker_block('ClusterVersion', GREEN, 'Cluster runs a supported release'),
    ]).encode('utf-8')


class ApiTestCase(unittest.TestCase):
    """Shared client setup."""

    def setUp(self):
        app.config['TESTING'] = True
        self.client = app.test_client()
        self.static_dir = tempfile.mkdtemp()
        self._saved = {k: app.config[k] for k in ('STATIC_DIR', 'MAX_CONTENT_LENGTH')}
        app.config['STATIC_DIR'] = self.static_dir

    def tearDown(self):
        app.config.update(self._saved)
        shutil.rmtree(self.static_dir, ignore_errors=True)

    def upload(self, content=None, filename='report.adoc', query=''):
        data = {}
        if content is not None:
            data['report'] = (BytesIO(content), filename)
        return self.client.post('/api/parse-report' + query, data=data,
                                content_type='multipart/form-data')


class TestParseReportEndpoint(ApiTestCase):
    """POST /api/parse-report"""

    def test_upload_returns_summary(self):
        """
        A valid report upload returns the wire-format summary.

        Expects: 200 with the Required item listed and one NoChange item.
        """
        response = self.upload(_sample_report())
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.data)
        self.assertEqual(data['itemsRequired'], ['KubeadminUser: kubeadmin account still present'])
        self.assertEqual(data['noChangeCount'], 1)
        self.assertEqual(data['overallScore'], 50.0)
        self.assertNotIn('details', data)
        self.assertEqual(response.headers['Access-Control-Allow-Origin'], '*')

    def test_details_query_parameter(self):
        response = self.upload(_sample_report(), query='?details=true')
        data = json.loads(response.data)
        self.assertEqual(data['details']['strategy'], 'marker_block')

    def test_asciidoc_extension_accepted(self):
        response = self.upload(_sample_report(), filename='report.asciidoc')
        self.assertEqual(response.status_code, 200)

    def test_missing_file(self):
        """
        Requests without the report field are rejected.

        Expects: 400 with VALIDATION_ERROR and a correlation id.
        """
        response = self.upload()
        self.assertEqual(response.status_code, 400)
        data = json.loads(response.data)
        self.assertFalse(data['success'])
        self.assertEqual(data['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('correlation_id', data['error'])

    def test_wrong_extension(self):
        response = self.upload(b'%PDF-1.4', filename='report.pdf')
        self.assertEqual(response.status_code, 400)
        data = json.loads(response.data)
        self.assertEqual(data['error']['code'], 'VALIDATION_ERROR')

    def test_configured_extensions_are_enforced(self):
        """
        Uploads are checked against the configured extensions.

        Expects: 400 for .adoc when only .asciidoc is allowed.
        """
        config = AppConfig(allowed_extensions=('.asciidoc',), log_to_console=False)
        with patch('report_summary.routes.get_config', return_value=config):
            rejected = self.upload(_sample_report(), filename='report.adoc')
            accepted = self.upload(_sample_report(), filename='report.asciidoc')
        self.assertEqual(rejected.status_code, 400)
        self.assertIn('.asciidoc', json.loads(rejected.data)['error']['message'])
        self.assertEqual(accepted.status_code, 200)

    def test_path_in_filename_is_ignored(self):
        response = self.upload(_sample_report(), filename='../../etc/report.adoc')
        self.assertEqual(response.status_code, 200)

    def test_temp_file_removed(self):
        """
        The uploaded copy is deleted after parsing.

        Expects: the path handed to the parser no longer exists.
        """
        seen = []
        real_parse = routes.parse_report

        def spy(path, policy=None):
            seen.append(path)
            self.assertTrue(os.path.exists(path))
            return real_parse(path, policy=policy)

        with patch('report_summary.routes.parse_report', side_effect=spy):
            response = self.upload(_sample_report())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(seen), 1)
        self.assertFalse(os.path.exists(seen[0]))

    def test_unexpected_failure(self):
        """
        Unexpected parser failures become a JSON 500.

        Expects: PROCESSING_ERROR without internal details.
        """
        with patch('report_summary.routes.parse_report', side_effect=RuntimeError('boom')):
            response = self.upload(_sample_report())
        self.assertEqual(response.status_code, 500)
        data = json.loads(response.data)
        self.assertEqual(data['error']['code'], 'PROCESSING_ERROR')
        self.assertNotIn('boom', data['error']['message'])

    def test_upload_too_large(self):
        app.config['MAX_CONTENT_LENGTH'] = 64
        response = self.upload(_sample_report())
        self.assertEqual(response.status_code, 413)
        data = json.loads(response.data)
        self.assertFalse(data['success'])

    def test_options_preflight(self):
        response = self.client.options('/api/parse-report')
        self.assertEqual(response.status_code, 200)
        self.assertIn('POST', response.headers['Access-Control-Allow-Methods'])

    def test_get_is_not_served(self):
        response = self.client.get('/api/parse-report')
        self.assertEqual(response.status_code, 404)
        data = json.loads(response.data)
        self.assertFalse(data['success'])


class TestProbes(ApiTestCase):
    """Liveness and readiness."""

    def test_healthz(self):
        response = self.client.get('/healthz')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.data), {'status': 'ok'})

    def test_readyz_without_dashboard(self):
        response = self.client.get('/readyz')
        self.assertEqual(response.status_code, 503)
        self.assertEqual(json.loads(response.data)['status'], 'not ready')

    def test_readyz_with_dashboard(self):
        with open(os.path.join(self.static_dir, 'index.html'), 'w') as f:
            f.write('<html></html>')
        response = self.client.get('/readyz')
        self.assertEqual(response.status_code, 200)


class TestStaticServing(ApiTestCase):
    """Dashboard files and client-side routes."""

    def setUp(self):
        super().setUp()
        with open(os.path.join(self.static_dir, 'index.html'), 'w') as f:
            f.write('<html>dashboard</html>')
        with open(os.path.join(self.static_dir, 'app.js'), 'w') as f:
            f.write('console.log(1);')

    def test_index(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'dashboard', response.data)
        response.close()

    def test_asset(self):
        response = self.client.get('/app.js')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'console.log', response.data)
        response.close()

    def test_client_route_falls_back_to_index(self):
        response = self.client.get('/reports/latest')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'dashboard', response.data)
        response.close()

    def test_missing_asset(self):
        response = self.client.get('/missing.css')
        self.assertEqual(response.status_code, 404)

    def test_unknown_api_path_is_json(self):
        response = self.client.get('/api/unknown')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(json.loads(response.data)['success'])

    def test_no_cache_headers(self):
        """
        Every response disables caching and carries a correlation id.

        Expects: Cache-Control no-cache and a non-empty X-Correlation-ID.
        """
        response = self.client.get('/')
        self.assertIn('no-cache', response.headers['Cache-Control'])
        self.assertEqual(response.headers['Pragma'], 'no-cache')
        self.assertTrue(response.headers['X-Correlation-ID'])
        response.close()


if __name__ == '__main__':
    unittest.main()
