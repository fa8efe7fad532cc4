from unittest.mock import Mock, patch

from tests.base import FormflowApiTestCase
from formflow.models.form_field_response import FormFieldResponse
from formflow.models.form_submission import FormSubmission
from formflow.services.field_validation import MSG_EMAIL, MSG_REQUIRED
from formflow.services.submissions import SubmissionPersistenceError
from formflow.services.webhook_dispatch import dispatch_submission_event


class PublicFormReadTests(FormflowApiTestCase):
    def test_published_form_is_returned_with_ordered_fields(self):
        form = self.create_form(slug="contato", title="Contato", theme_color=None)
        self.add_field(form, label="Segunda", order_index=1)
        self.add_field(form, label="Primeira", order_index=0)

        response = self.client.get("/api/public/forms/contato")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["title"], "Contato")
        self.assertEqual(body["theme_color"], "#6366f1")
        self.assertEqual([item["label"] for item in body["fields"]], ["Primeira", "Segunda"])
        self.assertNotIn("user_id", body)
        self.assertNotIn("webhook_url", body)

    def test_unpublished_or_unknown_form_is_404(self):
        self.create_form(slug="rascunho", is_published=False)
        self.assertEqual(self.client.get("/api/public/forms/rascunho").status_code, 404)
        self.assertEqual(self.client.get("/api/public/forms/nada").status_code, 404)


class PublicSubmissionTests(FormflowApiTestCase):
    def setUp(self):
        super().setUp()
        self.form = self.create_form(slug="survey1", success_message="Valeu!", allow_multiple_submissions=False)
        self.email = self.add_field(self.form, type="email", label="E-mail", is_required=True)
        self.choice = self.add_field(self.form, type="select", label="Opção", options=["A", "B"], is_required=True)
        self.phone = self.add_field(self.form, type="tel", label="Telefone")

    def test_valid_submission_is_persisted_and_dispatched(self):
        response = self.client.post(
            "/api/public/forms/survey1/submissions",
            json={
                "answers": {
                    str(self.email.id): "a@b.com",
                    str(self.choice.id): "B",
                    str(self.phone.id): "11999998888",
                    "campo-desconhecido": "ignorado",
                }
            },
            headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["success_message"], "Valeu!")
        self.assertFalse(body["allow_multiple_submissions"])
        self.enqueue_submission_mock.assert_called_once_with(body["submission_id"])

        with self.SessionLocal() as db:
            submission = db.query(FormSubmission).one()
            self.assertEqual(str(submission.id), body["submission_id"])
            self.assertEqual(submission.ip_address, "203.0.113.7")
            self.assertEqual(submission.user_agent, "pytest-agent")
            self.assertNotIn("campo-desconhecido", submission.submission_data)
            values = {row.field_id: row.value for row in db.query(FormFieldResponse).all()}
        self.assertEqual(
            values,
            {self.email.id: "a@b.com", self.choice.id: "B", self.phone.id: "(11) 99999-8888"},
        )

    def test_invalid_answers_return_field_errors(self):
        response = self.client.post(
            "/api/public/forms/survey1/submissions",
            json={"answers": {str(self.email.id): "not-an-email"}},
        )
        self.assertEqual(response.status_code, 400)
        detail = response.json()["detail"]
        self.assertEqual(
            detail["errors"],
            {str(self.email.id): MSG_EMAIL, str(self.choice.id): MSG_REQUIRED},
        )
        self.enqueue_submission_mock.assert_not_called()
        with self.SessionLocal() as db:
            self.assertEqual(db.query(FormSubmission).count(), 0)

    def test_unpublished_form_rejects_submissions(self):
        self.create_form(slug="fechado", is_published=False)
        response = self.client.post("/api/public/forms/fechado/submissions", json={"answers": {}})
        self.assertEqual(response.status_code, 404)

    def test_welcome_screen_does_not_block_api_submission(self):
        form = self.create_form(slug="bem-vindo", show_welcome_screen=True, welcome_title="Olá")
        field = self.add_field(form, is_required=True)
        response = self.client.post(
            "/api/public/forms/bem-vindo/submissions",
            json={"answers": {str(field.id): "resposta"}},
        )
        self.assertEqual(response.status_code, 201, response.text)

    def test_rate_limit_answers_429(self):
        payload = {"answers": {str(self.email.id): "a@b.com", str(self.choice.id): "A"}}
        with patch("formflow.services.rate_limit.settings.PUBLIC_SUBMIT_RATE_LIMIT", 2):
            statuses = [
                self.client.post("/api/public/forms/survey1/submissions", json=payload).status_code
                for _ in range(3)
            ]
        self.assertEqual(statuses, [201, 201, 429])

    def test_persistence_failure_returns_500(self):
        with patch(
            "formflow.services.form_runtime.persist_submission",
            side_effect=SubmissionPersistenceError("db down"),
        ):
            response = self.client.post(
                "/api/public/forms/survey1/submissions",
                json={"answers": {str(self.email.id): "a@b.com", str(self.choice.id): "A"}},
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Não foi possível enviar o formulário. Tente novamente.")
        self.enqueue_submission_mock.assert_not_called()

    def test_submitter_email_is_stored_and_sent_to_webhook(self):
        response = self.client.post(
            "/api/public/forms/survey1/submissions",
            json={
                "answers": {str(self.email.id): "a@b.com", str(self.choice.id): "A"},
                "submitted_by_email": "ana@example.com",
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        submission_id = response.json()["submission_id"]

        with self.SessionLocal() as db:
            submission = db.query(FormSubmission).one()
            self.assertEqual(submission.submitted_by_email, "ana@example.com")

        mock_response = Mock()
        mock_response.status_code = 200
        mock_client = Mock()
        mock_client.__enter__ = Mock(return_value=mock_client)
        mock_client.__exit__ = Mock(return_value=False)
        mock_client.post.return_value = mock_response
        with self.SessionLocal() as db, patch(
            "formflow.services.webhook_dispatch.settings.SUBMISSION_WEBHOOK_URL",
            "https://automation.example.com/webhook/submission",
        ), patch("formflow.services.webhook_dispatch.httpx.Client", return_value=mock_client):
            result = dispatch_submission_event(db, submission_id)

        self.assertTrue(result.success)
        payload = mock_client.post.call_args.kwargs["json"]
        self.assertEqual(payload["submissionId"], submission_id)
        self.assertEqual(payload["submittedByEmail"], "ana@example.com")

    def test_blank_submitter_email_is_stored_as_null(self):
        response = self.client.post(
            "/api/public/forms/survey1/submissions",
            json={
                "answers": {str(self.email.id): "a@b.com", str(self.choice.id): "A"},
                "submitted_by_email": "   ",
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        with self.SessionLocal() as db:
            self.assertIsNone(db.query(FormSubmission).one().submitted_by_email)

    def test_rate_limit_is_counted_per_form(self):
        other = self.create_form(slug="survey2")
        other_field = self.add_field(other, is_required=True)
        payload = {"answers": {str(self.email.id): "a@b.com", str(self.choice.id): "A"}}
        with patch("formflow.services.rate_limit.settings.PUBLIC_SUBMIT_RATE_LIMIT", 1):
            first = self.client.post("/api/public/forms/survey1/submissions", json=payload)
            other_response = self.client.post(
                "/api/public/forms/survey2/submissions",
                json={"answers": {str(other_field.id): "ok"}},
            )
            repeated = self.client.post("/api/public/forms/survey1/submissions", json=payload)
        self.assertEqual(first.status_code, 201)
        self.assertEqual(other_response.status_code, 201)
        self.assertEqual(repeated.status_code, 429)
