"""
Uniform response envelope shared by every API endpoint.

Success:  {"success": true,  "data": <payload>, "error": null}
Failure:  {"success": false, "data": null, "error": {"code", "message", "details"}}
"""
from rest_framework import status
from rest_framework.response import Response


def success_payload(data=None):
    return {'success': True, 'data': data, 'error': None}


def error_payload(code, message, details=None):
    return {
        'success': False,
        'data': None,
        'error': {
            'code': code,
            'message': message,
            'details': details,
        },
    }


def api_response(data=None, status_code=status.HTTP_200_OK):
    """Wrap serialized data in the success envelope"""
    return Response(success_payload(data), status=status_code)


def error_response(code, message, details=None, status_code=status.HTTP_400_BAD_REQUEST):
    """Build an error envelope response outside of the exception handler"""
    return Response(error_payload(code, message, details), status=status_code)


def no_content_response():
    return Response(status=status.HTTP_204_NO_CONTENT)
