from uuid import uuid4

from tests.base import FormflowApiTestCase
from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.form_field_response import FormFieldResponse
from formflow.models.form_submission import FormSubmission


class BuilderAuthTests(FormflowApiTestCase):
    def test_missing_or_bad_token_is_401(self):
        self.assertEqual(self.client.get("/api/builder/forms").status_code, 401)
        response = self.client.get("/api/builder/forms", headers={"Authorization": "Bearer nope"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Token inválido")

    def test_forms_of_other_owners_are_hidden(self):
        form = self.create_form()
        other = self.auth_headers(uuid4())
        self.assertEqual(self.client.get(f"/api/builder/forms/{form.id}", headers=other).status_code, 404)
        self.assertEqual(self.client.get("/api/builder/forms", headers=other).json()["total"], 0)


class BuilderFormCrudTests(FormflowApiTestCase):
    def test_create_generates_unique_slugs_and_enqueues_webhook(self):
        headers = self.auth_headers()
        first = self.client.post("/api/builder/forms", json={"title": "Pesquisa de Satisfação"}, headers=headers)
        second = self.client.post("/api/builder/forms", json={"title": "Pesquisa de Satisfação"}, headers=headers)
        third = self.client.post("/api/builder/forms", json={"title": "Pesquisa de Satisfação"}, headers=headers)
        self.assertEqual(first.status_code, 201, first.text)
        self.assertEqual(
            [item.json()["slug"] for item in (first, second, third)],
            ["pesquisa-de-satisfacao", "pesquisa-de-satisfacao-1", "pesquisa-de-satisfacao-2"],
        )
        body = first.json()
        self.assertEqual(body["public_url"], "http://localhost:8080/form/pesquisa-de-satisfacao")
        self.assertEqual(body["success_message"], "Obrigado! Sua resposta foi enviada.")
        self.assertFalse(body["is_published"])
        self.assertEqual(self.enqueue_form_mock.call_count, 3)
        self.assertEqual(self.enqueue_form_mock.call_args_list[0].args[1], "create")

    def test_create_with_fields_assigns_order_index(self):
        response = self.client.post(
            "/api/builder/forms",
            json={
                "title": "Cadastro",
                "fields": [
                    {"type": "name", "label": "Nome", "is_required": True},
                    {"type": "select", "label": "Plano", "options": ["Básico", "Pro"]},
                ],
            },
            headers=self.auth_headers(),
        )
        self.assertEqual(response.status_code, 201, response.text)
        fields = response.json()["fields"]
        self.assertEqual([(item["label"], item["order_index"]) for item in fields], [("Nome", 0), ("Plano", 1)])

    def test_unknown_field_type_is_rejected(self):
        response = self.client.post(
            "/api/builder/forms",
            json={"title": "X", "fields": [{"type": "rating", "label": "Nota"}]},
            headers=self.auth_headers(),
        )
        self.assertEqual(response.status_code, 422)

    def test_update_reprobes_explicit_slug(self):
        self.create_form(slug="ocupado", user_id=uuid4())
        form = self.create_form(slug="meu-form")
        response = self.client.patch(
            f"/api/builder/forms/{form.id}",
            json={"slug": "Ocupado", "is_published": True, "title": "Novo título"},
            headers=self.auth_headers(),
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["slug"], "ocupado-1")
        self.assertTrue(body["is_published"])
        self.assertEqual(body["title"], "Novo título")
        self.enqueue_form_mock.assert_called_once()
        self.assertEqual(self.enqueue_form_mock.call_args.args[1], "update")

    def test_blank_title_is_rejected_on_update(self):
        form = self.create_form()
        response = self.client.patch(f"/api/builder/forms/{form.id}", json={"title": "  "}, headers=self.auth_headers())
        self.assertEqual(response.status_code, 400)

    def test_replace_fields_reorders_and_deletes_missing_with_responses(self):
        form = self.create_form()
        keep = self.add_field(form, label="Fica")
        drop = self.add_field(form, label="Sai")
        with self.SessionLocal() as db:
            db.add(FormFieldResponse(submission_id=uuid4(), field_id=drop.id, value="x"))
            db.add(FormFieldResponse(submission_id=uuid4(), field_id=keep.id, value="y"))
            db.commit()

        response = self.client.put(
            f"/api/builder/forms/{form.id}/fields",
            json={
                "fields": [
                    {"type": "email", "label": "Novo e-mail"},
                    {"id": str(keep.id), "type": "text", "label": "Fica (editado)", "is_required": True},
                ]
            },
            headers=self.auth_headers(),
        )
        self.assertEqual(response.status_code, 200, response.text)
        fields = response.json()["fields"]
        self.assertEqual([item["label"] for item in fields], ["Novo e-mail", "Fica (editado)"])
        self.assertEqual([item["order_index"] for item in fields], [0, 1])
        self.assertEqual(fields[1]["id"], str(keep.id))
        self.enqueue_form_mock.assert_called_once()

        with self.SessionLocal() as db:
            self.assertIsNone(db.get(FormField, drop.id))
            self.assertEqual([row.field_id for row in db.query(FormFieldResponse).all()], [keep.id])

    def test_delete_cascades_to_fields_submissions_and_responses(self):
        form = self.create_form()
        field = self.add_field(form)
        with self.SessionLocal() as db:
            submission = FormSubmission(form_id=form.id, submission_data={str(field.id): "x"})
            db.add(submission)
            db.flush()
            db.add(FormFieldResponse(submission_id=submission.id, field_id=field.id, value="x"))
            db.commit()

        response = self.client.delete(f"/api/builder/forms/{form.id}", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Form).count(), 0)
            self.assertEqual(db.query(FormField).count(), 0)
            self.assertEqual(db.query(FormSubmission).count(), 0)
            self.assertEqual(db.query(FormFieldResponse).count(), 0)

    def test_list_filters_by_folder_and_root(self):
        headers = self.auth_headers()
        folder = self.client.post("/api/builder/folders", json={"name": "Clientes"}, headers=headers).json()
        in_folder = self.create_form(title="Na pasta")
        self.create_form(title="Na raiz")
        moved = self.client.post(
            f"/api/builder/forms/{in_folder.id}/move",
            json={"folder_id": folder["id"]},
            headers=headers,
        )
        self.assertEqual(moved.status_code, 200, moved.text)
        self.assertEqual(moved.json()["folder_id"], folder["id"])

        by_folder = self.client.get(f"/api/builder/forms?folder_id={folder['id']}", headers=headers).json()
        self.assertEqual([row["title"] for row in by_folder["rows"]], ["Na pasta"])
        at_root = self.client.get("/api/builder/forms?root=true", headers=headers).json()
        self.assertEqual([row["title"] for row in at_root["rows"]], ["Na raiz"])
        self.assertEqual(self.client.get("/api/builder/forms", headers=headers).json()["total"], 2)

    def test_move_to_foreign_folder_is_rejected(self):
        other_headers = self.auth_headers(uuid4())
        foreign = self.client.post("/api/builder/folders", json={"name": "Alheia"}, headers=other_headers).json()
        form = self.create_form()
        response = self.client.post(
            f"/api/builder/forms/{form.id}/move",
            json={"folder_id": foreign["id"]},
            headers=self.auth_headers(),
        )
        self.assertEqual(response.status_code, 400)


class BuilderSubmissionsTests(FormflowApiTestCase):
    def _submit(self, slug: str, answers: dict) -> None:
        response = self.client.post(f"/api/public/forms/{slug}/submissions", json={"answers": answers})
        self.assertEqual(response.status_code, 201, response.text)

    def test_submissions_list_and_csv_export(self):
        form = self.create_form(slug="evento", title="Evento")
        name = self.add_field(form, type="name", label="Nome")
        topics = self.add_field(form, type="checkbox", label="Temas", options=["A", "B", "C"])
        self._submit("evento", {str(name.id): "Ana Souza", str(topics.id): ["A", "C"]})
        self._submit("evento", {str(name.id): 'João "JJ" Lima'})

        listed = self.client.get(f"/api/builder/forms/{form.id}/submissions", headers=self.auth_headers()).json()
        self.assertEqual(listed["total"], 2)
        self.assertEqual([item["field"]["label"] for item in listed["rows"][0]["responses"]], ["Nome", "Temas"])

        response = self.client.get(f"/api/builder/forms/{form.id}/submissions/export", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertIn("Evento_respostas.csv", response.headers["content-disposition"])
        lines = response.text.strip().split("\n")
        self.assertEqual(lines[0], '"Data de Envio","Nome","Temas"')
        self.assertEqual(len(lines), 3)
        self.assertTrue(any(line.endswith('"Ana Souza","A, C"') for line in lines[1:]))
        self.assertTrue(any(line.endswith('"João ""JJ"" Lima",""') for line in lines[1:]))
        self.assertRegex(lines[1], r'^"\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2}",')
