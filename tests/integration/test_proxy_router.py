"""
Integration tests for proxy event dispatch.

These tests drive complete API Gateway proxy events through an ApiBuilder,
from normalization through routing and packaging to completion.
"""

import base64
import json
import pytest
from unittest.mock import Mock, patch
from uuid import UUID

from api_builder import ApiBuilder, ApiResponse
from api_builder.exceptions import RoutingError
from api_builder.handlers.dispatcher import INVALID_REQUEST_RESPONSE


def cors_free(headers):
    return {name: value for name, value in headers.items() if not name.startswith("Access-Control-")}


class TestProxyRouter:
    """Test cases for successful routing."""

    async def test_echo_query_string(self, api, make_event, lambda_context):
        api.get("/echo", lambda request, context: request.query_string)

        response = await api.proxy_router(make_event(queryStringParameters={"hi": "there"}), lambda_context)

        assert response["statusCode"] == 200
        assert response["body"] == '{"hi":"there"}'
        assert response["headers"]["Content-Type"] == "application/json"
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"
        assert response["headers"]["Access-Control-Allow-Methods"] == "GET,OPTIONS"

    async def test_handler_receives_request_and_context(self, api, make_event, lambda_context):
        handler = Mock(return_value="ok")
        api.get("/echo", handler)

        await api.proxy_router(make_event(), lambda_context)

        request, context = handler.call_args.args
        assert request.method == "GET"
        assert request.path == "/echo"
        assert request.lambda_context is lambda_context
        assert context is lambda_context

    async def test_async_handler(self, api, make_event):
        async def handler(request, context):
            return {"async": True}

        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["body"] == '{"async":true}'

    async def test_form_post(self, api, form_event):
        api.post("/echo", lambda request, context: request.post)

        response = await api.proxy_router(form_event)

        assert json.loads(response["body"]) == {"birthyear": "1905", "press": " OK "}

    async def test_static_success_template(self, api, make_event):
        api.get("/echo", lambda request, context: "<h1>hi</h1>", {"success": {"code": 203, "contentType": "text/html"}})

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 203
        assert response["headers"]["Content-Type"] == "text/html"
        assert response["body"] == "<h1>hi</h1>"

    async def test_dynamic_envelope(self, api, make_event):
        api.get("/echo", lambda request, context: ApiResponse("created", {"X-Version": "2"}, 201))

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 201
        assert response["headers"]["X-Version"] == "2"
        assert response["body"] == '"created"'

    async def test_any_route_is_used_for_other_methods(self, api, make_event):
        api.any("/echo", lambda request, context: request.method, {"success": 202})

        response = await api.proxy_router(make_event(method="DELETE"))

        assert response["statusCode"] == 202
        assert response["body"] == '"DELETE"'

    async def test_redirect(self, api, make_event):
        api.get("/echo", lambda request, context: "https://github.com", {"success": 302})

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 302
        assert response["headers"]["Location"] == "https://github.com"

    async def test_merged_variables(self, make_event):
        api = ApiBuilder(merge_vars=True)
        api.get("/echo", lambda request, context: request.env)

        with patch.dict("os.environ", {"test_TABLE": "stage-table", "TABLE": "global-table"}, clear=True):
            response = await api.proxy_router(make_event(stageVariables={"EXTRA": "x"}))

        assert json.loads(response["body"]) == {"TABLE": "stage-table", "test_TABLE": "stage-table", "EXTRA": "x"}

    def test_synchronous_entry_point(self, api, make_event):
        api.get("/echo", lambda request, context: "sync")

        assert api.resolve(make_event())["body"] == '"sync"'

    async def test_text_body_with_unserializable_values(self, api, make_event):
        api.get("/echo", lambda request, context: {"id": UUID(int=1)}, {"success": {"contentType": "text/plain"}})

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 200
        assert response["body"] == '{"id":"00000000-0000-0000-0000-000000000001"}'

    async def test_text_body_with_circular_structure(self, api, make_event):
        def handler(request, context):
            value = {"a": 1}
            value["self"] = value
            return value

        api.get("/echo", handler, {"success": {"contentType": "text/plain"}})

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 200
        assert response["body"] == '{"a":1,"self":"[Circular]"}'

    async def test_text_body_with_invalid_utf8(self, api, make_event):
        api.post("/echo", lambda request, context: request.body, {"success": {"contentType": "text/plain"}})
        event = make_event(
            method="POST",
            headers={"Content-Type": "text/plain"},
            body=base64.b64encode(b"caf\xe9").decode("ascii"),
            isBase64Encoded=True,
        )

        response = await api.proxy_router(event)

        assert response["statusCode"] == 200
        assert response["body"] == "caf\ufffd"


class TestHandlerErrors:
    """Test cases for failing handlers."""

    async def test_raised_error(self, api, make_event):
        def handler(request, context):
            raise RuntimeError("boom!")

        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 500
        assert response["body"] == '{"errorMessage":"boom!"}'
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    async def test_rejected_async_handler(self, api, make_event):
        async def handler(request, context):
            raise ValueError("later")

        api.get("/echo", handler, {"error": 400})

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 400
        assert response["body"] == '{"errorMessage":"later"}'

    async def test_raised_envelope(self, api, make_event):
        def handler(request, context):
            raise ApiResponse("not allowed", {"X-Reason": "auth"}, 403)

        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 403
        assert response["headers"]["X-Reason"] == "auth"
        assert response["body"] == '{"errorMessage":"not allowed"}'

    async def test_callback_receives_packaged_error(self, api, make_event):
        def handler(request, context):
            raise RuntimeError("boom!")

        api.get("/echo", handler)
        callback = Mock()

        await api.proxy_router(make_event(), None, callback)

        error, response = callback.call_args.args
        assert error is None
        assert response["statusCode"] == 500

    async def test_envelope_with_unserializable_body(self, api, make_event):
        def handler(request, context):
            raise ApiResponse({"id": UUID(int=1)}, {}, 409)

        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 409
        assert json.loads(response["body"]) == {"errorMessage": '{"id":"00000000-0000-0000-0000-000000000001"}'}

    async def test_envelope_with_circular_body(self, api, make_event):
        def handler(request, context):
            value = {"a": 1}
            value["self"] = value
            raise ApiResponse(value)

        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"errorMessage": '{"a":1,"self":"[Circular]"}'}


class TestCors:
    """Test cases for CORS handling."""

    async def test_options_request(self, api, make_event):
        api.get("/echo", lambda request, context: "get")
        api.post("/echo", lambda request, context: "post")

        response = await api.proxy_router(make_event(method="OPTIONS"))

        assert response["statusCode"] == 200
        assert response["body"] == ""
        assert response["headers"]["Access-Control-Allow-Methods"] == "GET,POST,OPTIONS"

    async def test_disabled_cors(self, api, make_event):
        api.cors_origin(False)
        api.get("/echo", lambda request, context: "ok")

        response = await api.proxy_router(make_event())

        assert response["headers"] == cors_free(response["headers"])

    async def test_options_with_disabled_cors(self, api, make_event):
        api.cors_origin(False)
        api.get("/echo", lambda request, context: "ok")

        response = await api.proxy_router(make_event(method="OPTIONS"))

        assert response == {"statusCode": 200, "headers": {}, "body": ""}

    async def test_error_with_disabled_cors(self, api, make_event):
        def handler(request, context):
            raise RuntimeError("boom!")

        api.cors_origin(False)
        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 500
        assert response["headers"] == {"Content-Type": "application/json"}

    async def test_async_origin_resolver(self, api, make_event):
        async def origin(request):
            return request.normalized_headers.get("origin")

        api.cors_origin(origin)
        api.get("/echo", lambda request, context: "ok")

        response = await api.proxy_router(make_event(headers={"Origin": "https://app.example.com"}))

        assert response["headers"]["Access-Control-Allow-Origin"] == "https://app.example.com"


class TestInterceptor:
    """Test cases for request interception."""

    async def test_modified_request_is_routed(self, api, make_event):
        def interceptor(request, context):
            return request.model_copy(update={"query_string": {"intercepted": "yes"}})

        api.intercept(interceptor)
        api.get("/echo", lambda request, context: request.query_string)

        response = await api.proxy_router(make_event(queryStringParameters={"hi": "there"}))

        assert response["body"] == '{"intercepted":"yes"}'

    async def test_async_interceptor(self, api, make_event):
        async def interceptor(request, context):
            return request

        api.intercept(interceptor)
        api.get("/echo", lambda request, context: "routed")

        assert (await api.proxy_router(make_event()))["body"] == '"routed"'

    async def test_falsy_result_aborts(self, api, make_event):
        handler = Mock(return_value="routed")
        callback = Mock()
        api.intercept(lambda request, context: None)
        api.get("/echo", handler)

        response = await api.proxy_router(make_event(), None, callback)

        assert response is None
        callback.assert_called_once_with(None, None)
        handler.assert_not_called()

    async def test_plain_object_result_is_routed(self, api, make_event):
        api.intercept(lambda request, context: {"context": {"method": "GET", "path": "/echo"}, "query_string": {"a": "1"}})
        api.get("/echo", lambda request, context: request.query_string)

        response = await api.proxy_router(make_event(method="POST", path="/other"))

        assert response["body"] == '{"a":"1"}'

    async def test_empty_object_result_is_routed(self, api, make_event):
        handler = Mock(return_value="routed")
        callback = Mock()
        api.intercept(lambda request, context: {})
        api.get("/echo", handler)

        await api.proxy_router(make_event(), None, callback)

        error, response = callback.call_args.args
        assert isinstance(error, RoutingError)
        assert response is None
        handler.assert_not_called()

    async def test_envelope_short_circuits(self, api, make_event):
        handler = Mock(return_value="routed")
        api.intercept(lambda request, context: ApiResponse("stop", {"X-Stopped": "1"}, 403))
        api.get("/echo", handler)

        response = await api.proxy_router(make_event())

        assert response["statusCode"] == 403
        assert response["body"] == '"stop"'
        assert response["headers"]["X-Stopped"] == "1"
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"
        handler.assert_not_called()

    async def test_interceptor_failure_with_callback(self, api, make_event):
        failure = RuntimeError("intercept failed")

        def interceptor(request, context):
            raise failure

        api.intercept(interceptor)
        api.get("/echo", lambda request, context: "routed")
        callback = Mock()

        response = await api.proxy_router(make_event(), None, callback)

        assert response is None
        callback.assert_called_once_with(failure, None)

    async def test_interceptor_failure_without_callback(self, api, make_event):
        async def interceptor(request, context):
            raise RuntimeError("intercept failed")

        api.intercept(interceptor)

        with pytest.raises(RuntimeError, match="intercept failed"):
            await api.proxy_router(make_event())


class TestRoutingFailures:
    """Test cases for events that cannot be routed."""

    async def test_unknown_route(self, api, make_event):
        api.get("/echo", lambda request, context: "ok")

        with pytest.raises(RoutingError, match="no handler for POST /echo"):
            await api.proxy_router(make_event(method="POST"))

    async def test_unknown_route_with_callback(self, api, make_event):
        callback = Mock()

        await api.proxy_router(make_event(path="/missing"), None, callback)

        error, response = callback.call_args.args
        assert isinstance(error, RoutingError)
        assert str(error) == "no handler for GET /missing"
        assert response is None

    async def test_non_gateway_event(self, api):
        with pytest.raises(RoutingError, match="event does not contain routing information"):
            await api.proxy_router({"Records": []})

    async def test_unsupported_event_handler(self, api, lambda_context):
        event = {"Records": []}
        callback = Mock()
        handler = Mock(return_value="handled")
        api.unsupported_event(handler)

        result = await api.proxy_router(event, lambda_context, callback)

        assert result == "handled"
        handler.assert_called_once_with(event, lambda_context, callback)
        callback.assert_not_called()

    async def test_invalid_json_body(self, api, make_event):
        handler = Mock()
        api.post("/echo", handler)
        event = make_event(method="POST", headers={"Content-Type": "application/json"}, body='{ "a": "b"')

        response = await api.proxy_router(event)

        assert response == INVALID_REQUEST_RESPONSE
        assert response["body"] == "The client request is invalid"
        handler.assert_not_called()

    async def test_completion_fires_once(self, api, make_event):
        callback = Mock()
        api.get("/echo", lambda request, context: "ok")

        response = await api.proxy_router(make_event(), None, callback)

        callback.assert_called_once_with(None, response)


    async def test_callback_errors_reach_the_caller(self, api, make_event):
        callback = Mock(side_effect=RuntimeError("callback failed"))
        api.get("/echo", lambda request, context: "ok")

        with pytest.raises(RuntimeError, match="callback failed"):
            await api.proxy_router(make_event(), None, callback)
        callback.assert_called_once()

class TestLegacyRouter:
    """Test cases for the older request shape."""

    async def test_base64_body_is_passed_through(self, api, form_event):
        api.post("/echo", lambda request, context: request.body, {"success": {"contentType": "text/plain"}})

        response = await api.router(form_event)

        assert response["body"] == form_event["body"]
        assert base64.b64decode(response["body"]) == b"birthyear=1905&press=%20OK%20"

    async def test_blank_body(self, api, make_event):
        api.get("/echo", lambda request, context: {"body": request.body})

        response = await api.router(make_event())

        assert response["body"] == '{"body":""}'
