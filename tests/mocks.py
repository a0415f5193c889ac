"""Shared definitions and a sample router used across the test suite."""

from api_docgen.annotations import doc
from api_docgen.definitions import Headers, Schema, headers, request_body, response, schema
from api_docgen.router import Router


@headers("PaginationHeaders")
def PaginationHeaders(h):
    h.header("total", "integer", desc="Total entries")
    h.header("per-page", "integer", desc="Entries per page", required=True)


RateLimitHeaders = Headers("RateLimitHeaders", headers={"X-Rate-Limited": "boolean"})


@schema("User", description="A user record")
def User(s):
    s.field("id", "uuid", desc="An ID", required=True)
    s.field("email", "string", required=True)
    s.field("parent", Parent)
    s.field("comments", [Comment])
    s.field("short_comments", [Comment, "string"])


@schema("Parent", description="A parent record")
def Parent(s):
    s.field("id", "uuid")
    s.field("child", User)


Comment = Schema("Comment", description="A comment record", fields={"id": "uuid", "text": "string"})

NotFound = Schema("NotFound", description="Not found", fields={"message": "string"})


@schema("UserWithTimestamps")
def UserWithTimestamps(s):
    s.partial(User)
    s.field("created_at", "datetime")


@response("UserResponse")
def UserResponse(r):
    r.description("A single user")
    r.headers(RateLimitHeaders)
    with r.content("application/json") as c:
        c.schema(User)
        c.example("response", {"id": "1"})


@response("PaginatedUsersResponse")
def PaginatedUsersResponse(r):
    r.description("A paginated list of users")
    r.headers(PaginationHeaders)
    r.headers(RateLimitHeaders)
    with r.content("application/json") as c:
        c.schema("list", of=[User])
        c.example("response", [{"id": "1"}])


@response("ErrorResponse")
def ErrorResponse(r):
    r.description("An error")
    with r.content("application/json") as c:
        c.schema(NotFound)


@request_body("UserRequestBody")
def UserRequestBody(r):
    r.description("A single user")
    with r.content("application/json") as c:
        c.schema(User)


@doc(
    id="listUsers",
    tags=["users"],
    auth="BearerAuth",
    query_params={"page": {"type": "integer", "desc": "Page number", "minimum": 1}},
    responses={200: PaginatedUsersResponse, 404: ErrorResponse},
)
def list_users(request):
    """Lists users."""


@doc(
    id="createUser",
    tags="users",
    auth={"OAuth": ["user.write"]},
    body=UserRequestBody,
    responses={201: UserResponse, 422: ErrorResponse},
)
def create_user(request):
    """Creates a user."""


@doc(
    path_params={"id": {"type": "uuid", "desc": "The user id"}},
    responses={200: UserResponse, 404: ErrorResponse},
)
def show_user(request, id):
    """Shows a user."""


@doc(
    multi=True,
    put={"id": "replaceUser", "body": User, "responses": {200: UserResponse}},
    patch={"id": "updateUser", "body": {"email": "string"}, "responses": {200: UserResponse}},
)
def update_user(request, id):
    """Updates a user."""


@doc(responses={204: None})
def delete_user(request, id):
    """Deletes a user."""


def health(request):
    return "ok"


router = Router()
router.get("/api/users", list_users, pipe_through=["api"])
router.post("/api/users", create_user, pipe_through=["api"])
router.get("/api/users/:id", show_user, pipe_through=["api"])
router.routes(["put", "patch"], "/api/users/:id", update_user, pipe_through=["api"])
router.delete("/api/users/:id", delete_user, pipe_through=["api"])
router.get("/health", health)
