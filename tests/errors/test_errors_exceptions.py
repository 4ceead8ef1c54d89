import unittest

from stackplan.errors import (
    ApiError,
    AuthError,
    BuildError,
    ConflictError,
    CyclicDependencyError,
    DuplicateIdentifierError,
    HttpErrorInfo,
    InvalidArgumentError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    StackPlanError,
    UnresolvablePropertyError,
    UnresolvedReferenceError,
    map_http_error,
)


class TestErrorHierarchy(unittest.TestCase):
    def test_build_errors_share_a_base(self) -> None:
        for cls in (DuplicateIdentifierError, UnresolvedReferenceError, UnresolvablePropertyError):
            self.assertTrue(issubclass(cls, BuildError))
            self.assertTrue(issubclass(cls, StackPlanError))

    def test_cyclic_dependency_error_carries_cycle(self) -> None:
        err = CyclicDependencyError("cycle", cycle=["a", "b"], details={"extra": 1})
        self.assertEqual(err.cycle, ["a", "b"])
        self.assertEqual(err.details["cycle"], ["a", "b"])
        self.assertEqual(err.details["extra"], 1)

    def test_details_default_to_empty_dict(self) -> None:
        err = StackPlanError("boom")
        self.assertEqual(err.details, {})
        self.assertIsNone(err.cause)


class TestMapHttpError(unittest.TestCase):
    def test_map_400(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=400, reason="badRequest"))
        self.assertIsInstance(err, InvalidArgumentError)
        self.assertEqual(err.details["status_code"], 400)

    def test_map_401(self) -> None:
        self.assertIsInstance(map_http_error(HttpErrorInfo(status_code=401)), AuthError)

    def test_map_403_permission(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=403, reason="insufficientPermissions"))
        self.assertIsInstance(err, PermissionError)

    def test_map_403_quota(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=403, reason="userRateLimitExceeded"))
        self.assertIsInstance(err, QuotaExceededError)

    def test_map_404(self) -> None:
        self.assertIsInstance(map_http_error(HttpErrorInfo(status_code=404)), NotFoundError)

    def test_map_409_and_412(self) -> None:
        self.assertIsInstance(map_http_error(HttpErrorInfo(status_code=409)), ConflictError)
        self.assertIsInstance(map_http_error(HttpErrorInfo(status_code=412)), ConflictError)

    def test_map_429(self) -> None:
        self.assertIsInstance(map_http_error(HttpErrorInfo(status_code=429)), RateLimitError)

    def test_map_5xx_and_keeps_cause(self) -> None:
        cause = RuntimeError("upstream")
        err = map_http_error(
            HttpErrorInfo(status_code=503, message="unavailable", details={"domain": "global"}),
            cause=cause,
        )
        self.assertIsInstance(err, ApiError)
        self.assertIs(err.cause, cause)
        self.assertEqual(str(err), "unavailable")
        self.assertEqual(err.details["domain"], "global")


if __name__ == "__main__":
    unittest.main()
