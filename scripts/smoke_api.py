"""Smoke-test a running server: python scripts/smoke_api.py [base_url]"""
import json
import sys
import urllib.error
import urllib.request
from http.cookiejar import CookieJar

BASE = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:5000"

_opener = urllib.request.build_opener(urllib.request.HTTPCookieProcessor(CookieJar()))


def _call(req):
    try:
        resp = _opener.open(req)
        return resp.status, json.loads(resp.read().decode())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read().decode())


def post(path, data):
    body = json.dumps(data).encode()
    req = urllib.request.Request(f"{BASE}{path}", data=body, headers={"Content-Type": "application/json"})
    return _call(req)


def get(path):
    return _call(urllib.request.Request(f"{BASE}{path}"))


print("=== Health ===")
print(get("/api/health"))

print("\n=== Subscribe ===")
print(post("/api/newsletter/subscribe", {"email": "smoke-test@example.com"}))

print("\n=== Unsubscribe ===")
print(post("/api/newsletter/unsubscribe", {"email": "smoke-test@example.com"}))

print("\n=== Blog ===")
status, posts = get("/api/blog/posts")
print(status, f"{len(posts)} published posts" if status == 200 else posts)

print("\n=== Admin (anonymous) ===")
print(get("/api/admin/subscribers"))

print("\n=== Login ===")
print(post("/api/admin/login", {"username": "admin", "password": "admin123"}))
print(get("/api/admin/session"))

print("\n=== Subscribers ===")
status, subs = get("/api/admin/subscribers")
print(status, f"{len(subs)} subscribers" if status == 200 else subs)

print("\n=== Reset request ===")
print(post("/api/admin/request-password-reset", {"username": "admin"}))

print("\n=== Logout ===")
print(post("/api/admin/logout", {}))
