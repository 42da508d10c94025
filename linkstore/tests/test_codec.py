import json
import unittest

from lzstring import LZString

from linkstore.codec import decode_body
from linkstore.errors import InvalidPayload


class DecodeBodyTests(unittest.TestCase):
    def test_plain_document(self):
        self.assertEqual(decode_body(b'{"tmpl": "run"}'), {"tmpl": "run"})

    def test_non_object_documents_pass_through(self):
        self.assertEqual(decode_body(b"[1, 2]"), [1, 2])
        self.assertIsNone(decode_body(b"null"))

    def test_empty_body(self):
        for raw in (b"", b"   \n"):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidPayload):
                    decode_body(raw)

    def test_invalid_json(self):
        with self.assertRaises(InvalidPayload):
            decode_body(b"{nope")

    def test_compressed_document(self):
        document = {"tmpl": "run", "to": "Sam", "notes": "y" * 2000}
        compressed = LZString().compressToEncodedURIComponent(json.dumps(document))
        body = json.dumps({"compressed": compressed}).encode()
        self.assertEqual(decode_body(body), document)

    def test_compressed_garbage(self):
        body = json.dumps({"compressed": "!!!not-lz!!!"}).encode()
        with self.assertRaises(InvalidPayload):
            decode_body(body)

    def test_compressed_non_json(self):
        compressed = LZString().compressToEncodedURIComponent("not json at all")
        body = json.dumps({"compressed": compressed}).encode()
        with self.assertRaises(InvalidPayload):
            decode_body(body)

    def test_non_finite_constants_rejected(self):
        for raw in (b'{"v": NaN}', b"Infinity", b"[1, -Infinity]"):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidPayload):
                    decode_body(raw)

    def test_compressed_non_finite_constants_rejected(self):
        compressed = LZString().compressToEncodedURIComponent('{"v": NaN}')
        body = json.dumps({"compressed": compressed}).encode()
        with self.assertRaises(InvalidPayload):
            decode_body(body)

    def test_falsy_compressed_key_is_kept(self):
        self.assertEqual(decode_body(b'{"compressed": ""}'), {"compressed": ""})


if __name__ == "__main__":
    unittest.main()
