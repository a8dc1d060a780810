import json
import os
import tempfile
import threading
import unittest
import urllib.error
import urllib.request
from importlib import util as importlib_util

from invoice_fixtures import make_customer, make_order

from storefront_invoice.layout import DEFAULT_LAYOUT
from storefront_invoice.server import (
    InvoiceHTTPServer,
    is_client_disconnect,
    make_handler,
    validate_invoice_request,
)
from storefront_invoice.storage import InvoiceStore

FPDF_AVAILABLE = importlib_util.find_spec("fpdf") is not None


class ApiValidationTests(unittest.TestCase):
    def _json_bytes(self, payload: object) -> bytes:
        return json.dumps(payload).encode("utf-8")

    def _validate(self, body: bytes, max_pages: int = 100):
        return validate_invoice_request(body, max_pages=max_pages, layout=DEFAULT_LAYOUT)

    def test_accepts_valid_payload(self) -> None:
        invoice, error = self._validate(self._json_bytes({"order": make_order(), "customer": make_customer()}))

        self.assertIsNone(error)
        assert invoice is not None
        self.assertEqual(invoice.order.id, "ORD-1001")
        self.assertEqual(invoice.customer.name, "Priya Raman")

    def test_missing_customer_is_allowed(self) -> None:
        invoice, error = self._validate(self._json_bytes({"order": make_order()}))

        self.assertIsNone(error)
        assert invoice is not None
        self.assertEqual(invoice.bill_to_name, "Customer")

    def test_rejects_invalid_utf8(self) -> None:
        _, error = self._validate(b"\xff")

        self.assertIsNotNone(error)
        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertEqual(error[1]["error"], "invalid_encoding")

    def test_rejects_invalid_json(self) -> None:
        _, error = self._validate(b'{"order":')

        self.assertIsNotNone(error)
        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertEqual(error[1]["error"], "invalid_json")

    def test_rejects_non_object_root(self) -> None:
        _, error = self._validate(self._json_bytes(["bad-root"]))

        self.assertIsNotNone(error)
        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertEqual(error[1]["error"], "invalid_payload")

    def test_rejects_missing_order(self) -> None:
        _, error = self._validate(self._json_bytes({"customer": make_customer()}))

        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertEqual(error[1]["error"], "invalid_payload")

    def test_rejects_order_without_items(self) -> None:
        _, error = self._validate(self._json_bytes({"order": make_order(items=[])}))

        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertEqual(error[1]["error"], "invalid_order")

    def test_rejects_unprintable_amounts(self) -> None:
        _, error = self._validate(self._json_bytes({"order": make_order(total="1e30")}))

        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertEqual(error[1]["error"], "invalid_order")

    def test_rejects_payload_exceeding_max_pages(self) -> None:
        _, error = self._validate(self._json_bytes({"order": make_order(40)}), max_pages=2)

        self.assertIsNotNone(error)
        assert error is not None
        self.assertEqual(error[0], 413)
        self.assertEqual(error[1]["error"], "invoice_too_large")
        self.assertEqual(error[1]["max_items"], 29)

    def test_client_disconnect_detection(self) -> None:
        self.assertTrue(is_client_disconnect(BrokenPipeError()))
        self.assertTrue(is_client_disconnect(ConnectionResetError()))
        self.assertFalse(is_client_disconnect(ValueError("nope")))


@unittest.skipUnless(FPDF_AVAILABLE, "fpdf is not installed")
class ApiServerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = InvoiceStore(os.path.join(self._tmp.name, "invoices"))
        self.server = InvoiceHTTPServer(("127.0.0.1", 0), make_handler(self.store, DEFAULT_LAYOUT))
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        host, port = self.server.server_address[:2]
        self.base_url = f"http://{host}:{port}"

    def tearDown(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=5)
        self._tmp.cleanup()

    def _request(self, method: str, path: str, payload: object = None):
        data = None if payload is None else json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self.base_url + path, data=data, method=method)
        if data is not None:
            request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=30) as response:
                return response.status, response.headers.get("Content-Type"), response.read()
        except urllib.error.HTTPError as exc:
            return exc.code, exc.headers.get("Content-Type"), exc.read()

    def test_health(self) -> None:
        status, _, body = self._request("GET", "/health")

        self.assertEqual(status, 200)
        self.assertEqual(json.loads(body), {"status": "ok"})

    def test_post_renders_and_get_serves_invoice(self) -> None:
        status, _, body = self._request("POST", "/invoices", {"order": make_order(), "customer": make_customer()})

        self.assertEqual(status, 201)
        reference = json.loads(body)["invoice"]
        self.assertTrue(reference.startswith("/invoices/invoice-ORD-1001-"))

        status, content_type, document = self._request("GET", reference)
        self.assertEqual(status, 200)
        self.assertEqual(content_type, "application/pdf")
        self.assertTrue(document.startswith(b"%PDF"))

    def test_invalid_order_is_a_bad_request(self) -> None:
        status, _, body = self._request("POST", "/invoices", {"order": make_order(items=[])})

        self.assertEqual(status, 400)
        self.assertEqual(json.loads(body)["error"], "invalid_order")

    def test_unknown_invoice_is_not_found(self) -> None:
        status, _, _ = self._request("GET", "/invoices/invoice-missing-1.pdf")

        self.assertEqual(status, 404)


if __name__ == "__main__":
    unittest.main()
