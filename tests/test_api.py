# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import os
import shutil
import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict, List
from unittest import mock

import httpx
from fastapi.testclient import TestClient


class _FakeLookup:
    def __init__(self, table: Dict[str, list]) -> None:
        self.table = table

    def search_foods(self, query: str) -> list:
        return list(self.table.get(query, []))


class TestDietBoardApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._tmp = Path(tempfile.mkdtemp(prefix="dietboard-test-"))
        data_root = cls._tmp / "data"
        os.environ["DIETBOARD_DATA_ROOT"] = str(data_root)
        os.environ["DIETBOARD_DB_PATH"] = str(data_root / "diet.db")
        os.environ["DIETBOARD_SEED_USERS"] = "ana:segredo,bruno:outra"
        os.environ["DIETBOARD_MAX_UPLOAD_MB"] = "1"
        # No AI key: every model call must be patched or degrade.
        os.environ.pop("GEMINI_API_KEY", None)
        # Unroutable USDA endpoint; nutrition lookups are patched per test.
        os.environ["USDA_BASE_URL"] = "http://127.0.0.1:1"

        # Ensure settings/app reflect the env vars above.
        for name in list(sys.modules.keys()):
            if name == "dietboard" or name.startswith("dietboard."):
                sys.modules.pop(name, None)

        from dietboard.api import app  # noqa: WPS433 (import inside test for env control)

        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls) -> None:
        cls.client.close()
        shutil.rmtree(cls._tmp, ignore_errors=True)

    # ---- helpers ----

    def _chat_history(self, username: str) -> List[dict]:
        resp = self.client.get("/api/chat", params={"username": username})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["messages"]

    # ---- app / auth ----

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertFalse(resp.json()["ai_available"])

    def test_login(self) -> None:
        resp = self.client.post("/api/auth", json={"username": "ana", "password": "segredo"})
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["user"]["username"], "ana")
        self.assertIsInstance(body["user"]["id"], int)

        resp = self.client.post("/api/auth", json={"username": "ana", "password": "errada"})
        self.assertEqual(resp.status_code, 401)
        resp = self.client.post("/api/auth", json={"username": "ana"})
        self.assertEqual(resp.status_code, 400)

    def test_malformed_body_is_400(self) -> None:
        resp = self.client.post("/api/auth", json=["ana", "segredo"])
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Invalid request", resp.json()["detail"])

    # ---- diet ----

    def test_diet_requires_known_user(self) -> None:
        self.assertEqual(self.client.get("/api/diet").status_code, 400)
        self.assertEqual(self.client.get("/api/diet", params={"username": "zeca"}).status_code, 404)
        resp = self.client.post("/api/diet", json={"username": "zeca", "content": "x"})
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post("/api/diet", json={"username": "ana", "content": "  "})
        self.assertEqual(resp.status_code, 400)

    def test_save_then_get_returns_last_content(self) -> None:
        for content in ("Café da manhã: pão", "Almoço: arroz e feijão"):
            resp = self.client.post("/api/diet", json={"username": "ana", "content": content})
            self.assertEqual(resp.status_code, 200, resp.text)
            self.assertFalse(resp.json()["structured"])

        resp = self.client.get("/api/diet", params={"username": "ana"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["diet_plan"], "Almoço: arroz e feijão")

        resp = self.client.get("/api/diet/view", params={"username": "ana"})
        view = resp.json()["view"]
        self.assertEqual(view["kind"], "legacy")
        self.assertEqual(view["cards"][0]["kind"], "lunch")

    def test_user_without_plan(self) -> None:
        resp = self.client.get("/api/diet", params={"username": "bruno"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["diet_plan"], "")
        resp = self.client.get("/api/diet/view", params={"username": "bruno"})
        self.assertEqual(resp.json()["view"]["kind"], "empty")

    def test_save_with_structuring_keeps_text_when_ai_is_down(self) -> None:
        resp = self.client.post(
            "/api/diet",
            json={"username": "ana", "content": "Jantar: sopa", "structure": True},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertFalse(resp.json()["structured"])
        self.assertEqual(
            self.client.get("/api/diet", params={"username": "ana"}).json()["diet_plan"],
            "Jantar: sopa",
        )

    def test_save_with_structuring(self) -> None:
        plan = {"refeicoes": [{"nome": "Jantar", "opcoes": []}]}
        with mock.patch("dietboard.diet.extraction.generate_text", return_value=json.dumps(plan)):
            resp = self.client.post(
                "/api/diet",
                json={"username": "ana", "content": "Jantar: sopa", "structure": True},
            )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertTrue(resp.json()["structured"])
        view = self.client.get("/api/diet/view", params={"username": "ana"}).json()["view"]
        self.assertEqual(view["kind"], "structured")
        self.assertEqual(view["cards"][0]["kind"], "dinner")

    # ---- process-text ----

    def test_process_text(self) -> None:
        plan = {"refeicoes": [{"nome": "Almoço", "opcoes": []}]}
        with mock.patch("dietboard.diet.extraction.generate_text", return_value=json.dumps(plan)):
            resp = self.client.post("/api/process-text", json={"text": "Almoço: arroz"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["structured_data"], plan)

    def test_process_text_errors(self) -> None:
        self.assertEqual(self.client.post("/api/process-text", json={"text": " "}).status_code, 400)

        with mock.patch(
            "dietboard.diet.extraction.generate_text",
            return_value='{"erro": "Texto não contém plano alimentar"}',
        ):
            resp = self.client.post("/api/process-text", json={"text": "bom dia"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Texto não contém plano alimentar")

        with mock.patch("dietboard.diet.extraction.generate_text", return_value="sem json"):
            resp = self.client.post("/api/process-text", json={"text": "Almoço"})
        self.assertEqual(resp.status_code, 400)

        # No key configured.
        resp = self.client.post("/api/process-text", json={"text": "Almoço"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Failed to process text")

    # ---- pdf-upload ----

    def test_pdf_upload_saves_extracted_plan(self) -> None:
        from dietboard.diet.extraction import ExtractionResult
        from dietboard.diet.models import ExtractionSource

        plan = {"refeicoes": [{"nome": "Ceia", "opcoes": []}]}
        result = ExtractionResult(
            content=json.dumps(plan), source=ExtractionSource.ai_pdf, structured=plan
        )
        with mock.patch("dietboard.diet.api.extract_plan_from_pdf", return_value=result):
            resp = self.client.post(
                "/api/pdf-upload",
                data={"username": "ana"},
                files={"pdf": ("plano.pdf", b"%PDF-1.4 stub", "application/pdf")},
            )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertTrue(body["saved"])
        self.assertTrue(body["structured"])
        self.assertEqual(body["source"], "ai_pdf")
        self.assertEqual(
            self.client.get("/api/diet", params={"username": "ana"}).json()["diet_plan"],
            json.dumps(plan),
        )

    def test_pdf_upload_reports_unsaved_plan(self) -> None:
        from dietboard.diet.extraction import ExtractionResult
        from dietboard.diet.models import ExtractionSource

        result = ExtractionResult(content="Almoço: arroz", source=ExtractionSource.raw_text)
        with mock.patch("dietboard.diet.api.extract_plan_from_pdf", return_value=result), mock.patch(
            "dietboard.diet.api.save_diet_plan", side_effect=sqlite3.OperationalError("disk I/O error")
        ):
            resp = self.client.post(
                "/api/pdf-upload",
                data={"username": "ana"},
                files={"file": ("plano.pdf", b"%PDF-1.4 stub", "application/pdf")},
            )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertFalse(resp.json()["saved"])
        self.assertFalse(resp.json()["structured"])
        self.assertEqual(resp.json()["text"], "Almoço: arroz")

    def test_pdf_upload_at_size_limit_is_accepted(self) -> None:
        from dietboard.diet.extraction import ExtractionResult
        from dietboard.diet.models import ExtractionSource

        result = ExtractionResult(content="Almoço: arroz", source=ExtractionSource.raw_text)
        exact = b"%PDF" + b"0" * (1024 * 1024 - 4)
        with mock.patch("dietboard.diet.api.extract_plan_from_pdf", return_value=result) as extract:
            resp = self.client.post(
                "/api/pdf-upload",
                data={"username": "ana"},
                files={"file": ("limite.pdf", exact, "application/pdf")},
            )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(len(extract.call_args.args[0]), 1024 * 1024)

    def test_pdf_upload_rejections(self) -> None:
        pdf = ("plano.pdf", b"%PDF-1.4 stub", "application/pdf")

        resp = self.client.post("/api/pdf-upload", data={"username": "ana"})
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post("/api/pdf-upload", data={"username": "zeca"}, files={"file": pdf})
        self.assertEqual(resp.status_code, 404)

        resp = self.client.post(
            "/api/pdf-upload",
            data={"username": "ana"},
            files={"file": ("notas.txt", b"ola", "text/plain")},
        )
        self.assertEqual(resp.status_code, 400)

        big = b"%PDF" + b"0" * (1024 * 1024)
        resp = self.client.post(
            "/api/pdf-upload",
            data={"username": "ana"},
            files={"file": ("grande.pdf", big, "application/pdf")},
        )
        self.assertEqual(resp.status_code, 400)

    def test_pdf_upload_without_text_is_422(self) -> None:
        from dietboard.diet.extraction import EmptyPDFError

        with mock.patch(
            "dietboard.diet.api.extract_plan_from_pdf",
            side_effect=EmptyPDFError("No text could be extracted from the PDF"),
        ):
            resp = self.client.post(
                "/api/pdf-upload",
                data={"username": "ana"},
                files={"file": ("scan.pdf", b"%PDF-1.4 stub", "application/pdf")},
            )
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["detail"], "No text could be extracted from the PDF")

    # ---- nutrition ----

    def test_food_swaps(self) -> None:
        from dietboard.nutrition.models import Food
        from dietboard.nutrition.swaps import CATEGORY_PROBES, FoodSwapCalculator

        calculator = FoodSwapCalculator(
            _FakeLookup(
                {
                    "arroz branco": [Food(name="arroz branco", calories_per_100g=130)],
                    CATEGORY_PROBES[0]: [Food(name="batata", calories_per_100g=65, category="Carboidratos")],
                }
            )
        )
        with mock.patch("dietboard.nutrition.api.swap_calculator", calculator):
            resp = self.client.get("/api/nutrition/swaps", params={"food": "arroz branco", "quantity": 100})
            missing = self.client.get("/api/nutrition/swaps", params={"food": "pedra"})
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body["target_calories"], 130)
        self.assertEqual(body["suggestions"][0]["food"], "batata")
        self.assertEqual(body["suggestions"][0]["quantity"], 200)

        self.assertEqual(missing.status_code, 200)
        self.assertEqual(missing.json()["suggestions"], [])
        self.assertIsNone(missing.json()["target_calories"])

        bad = self.client.get("/api/nutrition/swaps", params={"food": "arroz", "quantity": 0})
        self.assertEqual(bad.status_code, 400)

    def test_food_search(self) -> None:
        from dietboard.nutrition.cache import TTLCache
        from dietboard.nutrition.usda import USDAClient

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "foods": [
                        {
                            "description": "Banana, raw",
                            "foodNutrients": [{"nutrientNumber": "208", "value": 89}],
                        }
                    ]
                },
            )

        client = USDAClient(cache=TTLCache(60), transport=httpx.MockTransport(handler))
        with mock.patch("dietboard.nutrition.api.get_usda_client", return_value=client):
            resp = self.client.get("/api/nutrition/search", params={"q": "banana"})
        self.assertEqual(resp.status_code, 200, resp.text)
        foods = resp.json()["foods"]
        self.assertEqual(foods[0]["name"], "banana")
        self.assertEqual(foods[0]["category"], "Frutas")

    # ---- chat ----

    def test_chat_uses_ai_with_plan_context(self) -> None:
        self.client.post("/api/diet", json={"username": "ana", "content": "Ceia: iogurte"})
        before = len(self._chat_history("ana"))

        with mock.patch("dietboard.chat.api.generate_text", return_value="Resposta 1") as gen:
            resp = self.client.post("/api/chat", json={"username": "ana", "message": "Posso comer fruta à noite?"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["message"], "Resposta 1")
        system = gen.call_args.kwargs["system"]
        self.assertIn("Ceia: iogurte", system)
        self.assertIn("Usuário: Posso comer fruta à noite?", system)

        with mock.patch("dietboard.chat.api.generate_text", return_value="Resposta 2"):
            self.client.post("/api/chat", json={"username": "ana", "message": "E depois do treino?"})

        messages = self._chat_history("ana")[before:]
        self.assertEqual([m["role"] for m in messages], ["user", "assistant", "user", "assistant"])
        self.assertEqual(messages[-1]["content"], "Resposta 2")
        stamps = [m["created_at"] for m in self._chat_history("ana")]
        self.assertEqual(stamps, sorted(stamps))

    def test_chat_history_follows_insertion_order(self) -> None:
        with mock.patch("dietboard.chat.api.generate_text", return_value="Primeira"):
            self.client.post("/api/chat", json={"username": "bruno", "message": "Mensagem antiga"})
        # Wall clock stepped backwards between the two posts.
        with mock.patch(
            "dietboard.chat.storage.utc_now", return_value="2000-01-01T00:00:00.000000Z"
        ), mock.patch("dietboard.chat.api.generate_text", return_value="Segunda") as gen:
            resp = self.client.post("/api/chat", json={"username": "bruno", "message": "Mensagem nova"})
        self.assertEqual(resp.status_code, 200, resp.text)
        system = gen.call_args.kwargs["system"]
        self.assertTrue(system.rstrip().endswith("Usuário: Mensagem nova"), system)

        last = self._chat_history("bruno")[-4:]
        self.assertEqual(
            [m["content"] for m in last], ["Mensagem antiga", "Primeira", "Mensagem nova", "Segunda"]
        )

    def test_chat_swap_question_uses_calculator(self) -> None:
        from dietboard.nutrition.models import Food
        from dietboard.nutrition.swaps import CATEGORY_PROBES, FoodSwapCalculator

        calculator = FoodSwapCalculator(
            _FakeLookup(
                {
                    "arroz branco": [Food(name="arroz branco", calories_per_100g=130)],
                    CATEGORY_PROBES[0]: [Food(name="batata", calories_per_100g=65, category="Carboidratos")],
                }
            )
        )
        with mock.patch("dietboard.chat.api.swap_calculator", calculator), mock.patch(
            "dietboard.chat.api.generate_text"
        ) as gen:
            resp = self.client.post(
                "/api/chat", json={"username": "bruno", "message": "Posso trocar 100g de arroz branco?"}
            )
        self.assertEqual(resp.status_code, 200, resp.text)
        answer = resp.json()["message"]
        self.assertTrue(answer.startswith("**Substituições para arroz branco (100g = 130 kcal):**"))
        self.assertIn("**batata** - 200g", answer)
        gen.assert_not_called()

    def test_chat_ai_failure_keeps_user_message(self) -> None:
        from dietboard.ai.errors import AIServiceError

        with mock.patch("dietboard.chat.api.generate_text", side_effect=AIServiceError("boom")):
            resp = self.client.post("/api/chat", json={"username": "bruno", "message": "Olá?"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Failed to generate response")
        last = self._chat_history("bruno")[-1]
        self.assertEqual((last["role"], last["content"]), ("user", "Olá?"))

    def test_chat_validation(self) -> None:
        self.assertEqual(self.client.post("/api/chat", json={"username": "ana"}).status_code, 400)
        resp = self.client.post("/api/chat", json={"username": "zeca", "message": "oi"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.client.get("/api/chat").status_code, 400)


if __name__ == "__main__":
    unittest.main()
