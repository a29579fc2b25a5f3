import asyncio
import socket
import unittest

from webscore.errors import URLValidationError
from webscore.validation import is_blocked_address, validate_url, validate_urls


def static_resolver(addresses):
    async def resolve(hostname):
        return addresses
    return resolve


async def failing_resolver(hostname):
    raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")


class BatchValidationTests(unittest.TestCase):
    def test_eleven_urls_rejected(self):
        urls = [f"https://example.com/page{i}" for i in range(11)]
        with self.assertRaises(URLValidationError):
            asyncio.run(validate_urls(urls, max_urls=10, resolver=None))

    def test_ten_urls_accepted(self):
        urls = [f"https://example.com/page{i}" for i in range(10)]
        self.assertEqual(asyncio.run(validate_urls(urls, max_urls=10, resolver=None)), urls)

    def test_empty_list_rejected(self):
        with self.assertRaises(URLValidationError):
            asyncio.run(validate_urls([], max_urls=10, resolver=None))

    def test_string_instead_of_list_rejected(self):
        with self.assertRaises(URLValidationError):
            asyncio.run(validate_urls("https://example.com", max_urls=10, resolver=None))

    def test_one_bad_url_rejects_whole_batch(self):
        with self.assertRaises(URLValidationError):
            asyncio.run(validate_urls(
                ["https://example.com/", "http://10.0.0.1/"], max_urls=10, resolver=None
            ))


class URLValidationTests(unittest.TestCase):
    def test_private_and_loopback_literals_rejected(self):
        for url in ("http://127.0.0.1/", "http://192.168.1.5/", "http://10.0.0.1/",
                    "http://172.16.4.2/", "http://169.254.169.254/latest", "http://0.0.0.0/",
                    "http://[::1]/"):
            with self.subTest(url=url):
                with self.assertRaises(URLValidationError):
                    asyncio.run(validate_url(url, resolver=None))

    def test_localhost_rejected(self):
        for url in ("http://localhost:8000/", "http://LOCALHOST/", "http://app.localhost/"):
            with self.subTest(url=url):
                with self.assertRaises(URLValidationError):
                    asyncio.run(validate_url(url, resolver=None))

    def test_unsupported_scheme_rejected(self):
        for url in ("ftp://example.com/", "file:///etc/passwd", "javascript:alert(1)", "example.com"):
            with self.subTest(url=url):
                with self.assertRaises(URLValidationError):
                    asyncio.run(validate_url(url, resolver=None))

    def test_malformed_url_rejected(self):
        for url in ("http://[::1/", "https://example.com]/", "http://[fe80::1/path"):
            with self.subTest(url=url):
                with self.assertRaises(URLValidationError):
                    asyncio.run(validate_url(url, resolver=None))

    def test_public_172_range_outside_private_block_accepted(self):
        self.assertEqual(asyncio.run(validate_url("http://172.32.0.1/", resolver=None)), "http://172.32.0.1/")
        self.assertEqual(asyncio.run(validate_url("http://172.15.0.1/", resolver=None)), "http://172.15.0.1/")
        self.assertTrue(is_blocked_address("172.16.0.1"))
        self.assertTrue(is_blocked_address("172.31.255.255"))

    def test_hostname_resolving_to_private_address_rejected(self):
        with self.assertRaises(URLValidationError):
            asyncio.run(validate_url("https://intranet.example.com/", resolver=static_resolver(["10.1.2.3"])))

    def test_hostname_resolving_to_public_address_accepted(self):
        url = asyncio.run(validate_url(" https://example.com/ ", resolver=static_resolver(["93.184.216.34"])))
        self.assertEqual(url, "https://example.com/")

    def test_unresolvable_hostname_accepted(self):
        url = asyncio.run(validate_url("https://does-not-exist.invalid/", resolver=failing_resolver))
        self.assertEqual(url, "https://does-not-exist.invalid/")

    def test_ipv4_mapped_ipv6_blocked(self):
        self.assertTrue(is_blocked_address("::ffff:127.0.0.1"))
        self.assertFalse(is_blocked_address("93.184.216.34"))


if __name__ == "__main__":
    unittest.main()
