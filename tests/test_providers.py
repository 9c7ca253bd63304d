import unittest
from unittest import mock

import requests

from cognimaze.ai.provider_local import LocalProvider
from cognimaze.ai.provider_remote import RemoteProvider, create_remote_provider
from cognimaze.core.models import AnalysisRequest, Profile


def reference_request() -> AnalysisRequest:
    return AnalysisRequest(session_id="session_1", moves=20, time_taken=45, hesitations=1, decisions=20)


class LocalProviderTestCase(unittest.TestCase):
    def test_local_provider_runs_the_rule_classifier(self):
        profile = LocalProvider().analyze(reference_request())
        self.assertIsInstance(profile, Profile)
        self.assertEqual("session_1", profile.session_id)
        self.assertEqual(78, profile.metrics.overall_score)
        self.assertEqual("balanced", profile.archetype.type)

    def test_request_accepts_camel_case_payload(self):
        request = AnalysisRequest.model_validate(
            {"sessionId": "s", "moves": 40, "timeTaken": 100, "hesitations": 0}
        )
        profile = LocalProvider().analyze(request)
        self.assertEqual("explorer", profile.archetype.type)
        self.assertEqual(40, profile.metrics.decisions)


class RemoteProviderTestCase(unittest.TestCase):
    def test_unreachable_service_disables_remote_calls(self):
        with mock.patch("cognimaze.ai.provider_remote.requests.get", side_effect=requests.ConnectionError("down")):
            provider = RemoteProvider("http://analysis.invalid")
        self.assertFalse(provider._client)
        self.assertIn("fallback", provider.name)
        with mock.patch("cognimaze.ai.provider_remote.requests.post") as post:
            profile = provider.analyze(reference_request())
        post.assert_not_called()
        self.assertEqual(78, profile.metrics.overall_score)

    def test_remote_profile_is_validated(self):
        remote = LocalProvider().analyze(
            AnalysisRequest(session_id="session_1", moves=60, time_taken=20, hesitations=12)
        )
        response = mock.Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = {"success": True, "profile": remote.model_dump(mode="json", by_alias=True)}

        provider = RemoteProvider("http://analysis.local/", probe=False)
        with mock.patch("cognimaze.ai.provider_remote.requests.post", return_value=response) as post:
            profile = provider.analyze(reference_request())

        url = post.call_args.args[0]
        body = post.call_args.kwargs["json"]
        self.assertEqual("http://analysis.local/api/analyze/game", url)
        self.assertEqual(45, body["timeTaken"])
        self.assertEqual("session_1", body["sessionId"])
        self.assertEqual(remote, profile)

    def test_failed_request_falls_back_to_local_shape(self):
        provider = RemoteProvider("http://analysis.local", probe=False)
        with mock.patch(
            "cognimaze.ai.provider_remote.requests.post",
            side_effect=requests.Timeout("slow"),
        ):
            profile = provider.analyze(reference_request())
        local = LocalProvider().analyze(reference_request())
        self.assertEqual(local.metrics, profile.metrics)
        self.assertEqual(local.archetype, profile.archetype)

    def test_malformed_response_falls_back(self):
        response = mock.Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = {"profile": {"archetype": "nope"}}
        provider = RemoteProvider("http://analysis.local", probe=False)
        with mock.patch("cognimaze.ai.provider_remote.requests.post", return_value=response):
            profile = provider.analyze(reference_request())
        self.assertEqual("balanced", profile.archetype.type)

    def test_factory_reads_url_from_environment(self):
        with mock.patch.dict("os.environ", {"COGNIMAZE_ANALYSIS_URL": "http://env.local"}), \
                mock.patch("cognimaze.ai.provider_remote.requests.get", side_effect=requests.ConnectionError()):
            provider = create_remote_provider()
        self.assertEqual("http://env.local", provider.base_url)


if __name__ == "__main__":
    unittest.main()
