"""
Selection profiles for AceMock

Defines the static taxonomy of selectable technologies:
- Languages, frameworks and tracks
- Topics used verbatim in technical prompts
- Coding-challenge style and starter templates
- Remote execution runtime per selection
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileKind(str, Enum):
    """Category of a selectable technology."""

    LANGUAGE = "Language"
    FRAMEWORK = "Framework"
    TRACK = "Track"


class SelectionProfile(BaseModel):
    """Evaluation configuration for one selectable technology."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Selection string shown to the candidate")
    kind: ProfileKind
    description: str = ""
    topics: tuple[str, ...] = Field(..., description="Topics used verbatim in prompts")
    coding_language: str = Field(
        ...,
        description="Language used for code fences and the starter template"
    )
    execution_language_id: str | None = Field(
        default=None,
        description="Remote runtime id; None means static evaluation only"
    )
    challenge_style: str
    starter_template: str

    @field_validator("topics")
    @classmethod
    def _topics_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("profile topics must not be empty")
        return value

    @field_validator("starter_template")
    @classmethod
    def _starter_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("profile starter template must not be empty")
        return value

    @property
    def supports_execution(self) -> bool:
        """Whether code for this selection can be run remotely."""
        return self.execution_language_id is not None


# ============================================================================
# RUNTIME MAP
# ============================================================================

# Selection string -> remote execution runtime id. Frameworks and tracks run
# on their base language.
SELECTION_RUNTIMES: dict[str, str] = {
    # Languages
    "JavaScript": "javascript",
    "TypeScript": "typescript",
    "Python": "python",
    "Java": "java",
    "C++": "cpp",
    "C#": "csharp",
    "Go": "go",
    "Rust": "rust",
    "PHP": "php",
    "Ruby": "ruby",
    "Kotlin": "kotlin",
    "Swift": "swift",
    # Frameworks
    "React": "javascript",
    "Angular": "typescript",
    "Vue": "javascript",
    "Svelte": "javascript",
    "Next.js": "javascript",
    "Express.js": "javascript",
    "NestJS": "typescript",
    "Django": "python",
    "Flask": "python",
    "FastAPI": "python",
    "Spring Boot": "java",
    "ASP.NET Core": "csharp",
    "Ruby on Rails": "ruby",
    "Laravel": "php",
    # Tracks
    "Full-Stack (MERN)": "javascript",
    "Data Science (Python)": "python",
    "Android (Kotlin)": "kotlin",
    "iOS (Swift)": "swift",
}

# Runtime executed in the browser sandbox rather than the remote service
BROWSER_RUNTIME = "javascript"


# ============================================================================
# PROFILE DEFINITIONS
# ============================================================================

def _profile(name: str, kind: ProfileKind, description: str, topics: list[str],
             coding_language: str, challenge_style: str, starter_template: str) -> SelectionProfile:
    return SelectionProfile(
        name=name,
        kind=kind,
        description=description,
        topics=tuple(topics),
        coding_language=coding_language,
        execution_language_id=SELECTION_RUNTIMES.get(name),
        challenge_style=challenge_style,
        starter_template=starter_template,
    )


_LANGUAGES: list[SelectionProfile] = [
    _profile(
        "JavaScript", ProfileKind.LANGUAGE, "Versatile for web and beyond.",
        ["scopes and closures", "event loop and microtasks", "promises vs async/await",
         "array/object manipulation", "ES modules vs CommonJS", "this binding and arrow functions"],
        "javascript",
        "Algorithmic or data-structure problem solvable in 20 minutes.",
        """function solve(input) {
  // TODO: implement
  return null;
}

// Example usage:
// console.log(solve(/* your input */));
""",
    ),
    _profile(
        "TypeScript", ProfileKind.LANGUAGE, "Typed superset of JavaScript.",
        ["types vs interfaces", "generics", "narrowing", "utility types", "modules", "strict mode"],
        "typescript",
        "Algorithm with type-safe function signature.",
        """export function solve<T>(input: T): unknown {
  // TODO: implement
  return null;
}
""",
    ),
    _profile(
        "Python", ProfileKind.LANGUAGE, "Great for data, backend, scripting.",
        ["data structures", "list/dict/set comprehensions", "decorators",
         "generators/iterators", "OOP basics", "virtual env"],
        "python",
        "Algorithmic function or simple class method.",
        '''def solve(input):
    """TODO: implement"""
    return None

if __name__ == "__main__":
    pass
''',
    ),
    _profile(
        "Java", ProfileKind.LANGUAGE, "Enterprise-grade OOP language.",
        ["OOP", "collections framework", "generics", "streams", "exceptions", "JVM basics"],
        "java",
        "Class with a static method implementing the algorithm.",
        """public class Solution {
    public static Object solve(Object input) {
        // TODO: implement
        return null;
    }
}
""",
    ),
    _profile(
        "C++", ProfileKind.LANGUAGE, "High performance systems programming.",
        ["value vs reference", "RAII", "STL containers/algorithms", "smart pointers", "move semantics"],
        "cpp",
        "Function implementing the algorithm; prefer STL.",
        """#include <bits/stdc++.h>
using namespace std;

auto solve(/* your params */) {
    // TODO: implement
    return 0;
}

int main(){
    // cout << solve(...);
    return 0;
}
""",
    ),
    _profile(
        "C#", ProfileKind.LANGUAGE, "Modern language for .NET ecosystem.",
        ["LINQ", "async/await", "collections", "OOP", "generics", "memory management basics"],
        "csharp",
        "Static method in a class; use LINQ where suitable.",
        """public static class Solution {
    public static object Solve(object input) {
        // TODO: implement
        return null;
    }
}
""",
    ),
    _profile(
        "Go", ProfileKind.LANGUAGE, "Fast, simple, and concurrent.",
        ["goroutines and channels", "interfaces", "slices vs arrays", "error handling", "packages/modules"],
        "go",
        "Function with clear signature and tests in mind.",
        """package main

func Solve(input any) any {
    // TODO: implement
    return nil
}

func main() {}
""",
    ),
    _profile(
        "Rust", ProfileKind.LANGUAGE, "Memory-safe and fast systems.",
        ["ownership and borrowing", "lifetimes (intro)", "Option/Result", "iterators", "collections"],
        "rust",
        "Function with clear types and Result where appropriate.",
        """pub fn solve<T>(_input: T) -> Option<String> {
    // TODO: implement
    None
}

fn main() {}
""",
    ),
]

_FRAMEWORKS: list[SelectionProfile] = [
    _profile(
        "React", ProfileKind.FRAMEWORK, "Component-driven UI library for the web.",
        ["hooks (useState, useEffect)", "props vs state", "memoization", "keys & lists",
         "controlled components", "performance"],
        "tsx",
        "Build a small functional component with props and state.",
        """import { useState } from 'react';

export function Widget({ initial }: { initial: number }) {
  const [value, setValue] = useState(initial);
  // TODO: implement required behavior
  return <div>{value}</div>;
}
""",
    ),
    _profile(
        "Angular", ProfileKind.FRAMEWORK, "Full-featured web app framework by Google.",
        ["components", "modules", "dependency injection", "RxJS basics", "templates", "routing basics"],
        "typescript",
        "Implement a service or component method with RxJS.",
        """import { Injectable } from '@angular/core';
import { Observable, of } from 'rxjs';

@Injectable({ providedIn: 'root' })
export class ExampleService {
  fetch(): Observable<string> {
    // TODO: implement
    return of('');
  }
}
""",
    ),
    _profile(
        "Vue", ProfileKind.FRAMEWORK, "Progressive framework for building UIs.",
        ["reactivity", "computed vs watch", "components/props", "composition API basics", "routing basics"],
        "javascript",
        "Implement a composable or component logic.",
        """export default {
  name: 'Widget',
  props: { initial: Number },
  data() { return { value: this.initial } },
  // TODO: implement behavior
}
""",
    ),
    _profile(
        "Svelte", ProfileKind.FRAMEWORK, "Compiler for truly reactive web apps.",
        ["reactivity with $", "props", "stores basics", "bindings", "events"],
        "javascript",
        "Small component logic demonstrating reactivity.",
        """<script>
  export let initial = 0;
  let value = initial;
  // TODO: implement behavior
</script>

<div>{value}</div>
""",
    ),
    _profile(
        "Next.js", ProfileKind.FRAMEWORK, "React framework for SSR/SSG and routing.",
        ["routing", "data fetching (SSR/SSG)", "API routes basics", "metadata", "dynamic routes"],
        "typescript",
        "Implement a simple server component or API handler.",
        """export async function GET() {
  // TODO: implement API handler
  return new Response(JSON.stringify({ ok: true }));
}
""",
    ),
    _profile(
        "Express.js", ProfileKind.FRAMEWORK, "Minimal and flexible Node.js web framework.",
        ["routing", "middleware", "error handling", "request validation", "async handlers"],
        "javascript",
        "Implement an Express route handler/middleware.",
        """export function handler(req, res, next) {
  try {
    // TODO: implement
    res.json({ ok: true });
  } catch (err) { next(err); }
}
""",
    ),
    _profile(
        "NestJS", ProfileKind.FRAMEWORK, "Structured Node.js framework with TypeScript.",
        ["modules/controllers/services", "decorators", "providers/DI", "pipes/guards basics"],
        "typescript",
        "Implement a service method or controller handler.",
        """import { Injectable } from '@nestjs/common';

@Injectable()
export class ExampleService {
  compute(input: unknown): unknown {
    // TODO: implement
    return null;
  }
}
""",
    ),
    _profile(
        "Django", ProfileKind.FRAMEWORK, "Batteries-included Python web framework.",
        ["models", "ORM queries", "views basics", "forms/validation basics", "settings & migrations"],
        "python",
        "Implement a model method or view logic.",
        """from django.http import JsonResponse

def handler(request):
    # TODO: implement
    return JsonResponse({ 'ok': True })
""",
    ),
    _profile(
        "Flask", ProfileKind.FRAMEWORK, "Lightweight Python web microframework.",
        ["routing", "request/response", "blueprints basics", "validation basics"],
        "python",
        "Implement a route function.",
        """from flask import Flask, request, jsonify
app = Flask(__name__)

@app.route('/task', methods=['POST'])
def task():
    # TODO: implement
    return jsonify({ 'ok': True })
""",
    ),
    _profile(
        "FastAPI", ProfileKind.FRAMEWORK, "High-performance APIs with Python type hints.",
        ["path/query/body params", "Pydantic models basics", "responses", "dependency injection basics"],
        "python",
        "Implement an endpoint function.",
        """from fastapi import FastAPI
app = FastAPI()

@app.get('/status')
def status():
    # TODO: implement
    return { 'ok': True }
""",
    ),
    _profile(
        "Spring Boot", ProfileKind.FRAMEWORK, "Rapid Java backend development framework.",
        ["controllers", "services", "dependency injection", "REST basics", "validation basics"],
        "java",
        "Implement a service method or controller handler.",
        """import org.springframework.web.bind.annotation.*;

@RestController
public class ExampleController {
    @GetMapping("/status")
    public Object status() {
        // TODO: implement
        return java.util.Map.of("ok", true);
    }
}
""",
    ),
    _profile(
        "ASP.NET Core", ProfileKind.FRAMEWORK, "Cross-platform, high-performance .NET web.",
        ["controllers", "dependency injection", "middleware basics", "routing", "model binding"],
        "csharp",
        "Implement a controller action or service method.",
        """using Microsoft.AspNetCore.Mvc;

[ApiController]
[Route("api/[controller]")]
public class StatusController : ControllerBase {
    [HttpGet]
    public IActionResult Get() {
        // TODO: implement
        return Ok(new { ok = true });
    }
}
""",
    ),
    _profile(
        "Ruby on Rails", ProfileKind.FRAMEWORK, "Convention-over-configuration web framework.",
        ["MVC basics", "ActiveRecord", "routes", "controllers/actions", "validations"],
        "ruby",
        "Implement a controller action or model validation.",
        """class StatusController < ApplicationController
  def show
    # TODO: implement
    render json: { ok: true }
  end
end
""",
    ),
    _profile(
        "Laravel", ProfileKind.FRAMEWORK, "Expressive PHP framework for the web.",
        ["routing", "controllers", "Eloquent basics", "validation", "service container basics"],
        "php",
        "Implement a controller method.",
        """<?php

namespace App\\Http\\Controllers;

use Illuminate\\Http\\Request;

class StatusController extends Controller {
    public function show(Request $request) {
        // TODO: implement
        return response()->json(['ok' => true]);
    }
}
""",
    ),
]

_TRACKS: list[SelectionProfile] = [
    _profile(
        "Full-Stack (MERN)", ProfileKind.TRACK, "MongoDB, Express, React, Node.",
        ["MongoDB basics", "Express routing", "React components", "Node async patterns", "RESTful design"],
        "javascript",
        "Implement an Express route or React utility related to MERN tasks.",
        """// Express route handler example
export function handler(req, res) {
  // TODO: implement
  res.json({ ok: true });
}
""",
    ),
    _profile(
        "Data Science (Python)", ProfileKind.TRACK, "Pandas, NumPy, ML basics.",
        ["NumPy", "Pandas", "data cleaning", "basic ML", "visualization basics"],
        "python",
        "Implement a function manipulating a dataset (no external files).",
        '''def transform(df):
    """df: pandas.DataFrame -> pandas.DataFrame"""
    # TODO: implement
    return df
''',
    ),
    _profile(
        "Android (Kotlin)", ProfileKind.TRACK, "Native Android development.",
        ["activities/fragments basics", "coroutines", "ViewModel basics", "collections and null-safety"],
        "kotlin",
        "Implement a pure Kotlin function or small class method (no Android framework required).",
        """object Solution {
    fun solve(input: Any?): Any? {
        // TODO: implement
        return null
    }
}
""",
    ),
    _profile(
        "iOS (Swift)", ProfileKind.TRACK, "Native iOS development.",
        ["optionals", "structs/classes", "protocols", "value semantics", "collections"],
        "swift",
        "Implement a pure Swift function (no UIKit/SwiftUI required).",
        """func solve(_ input: Any?) -> Any? {
    // TODO: implement
    return nil
}
""",
    ),
]

PROFILE_CATALOG: dict[str, SelectionProfile] = {
    profile.name: profile for profile in _LANGUAGES + _FRAMEWORKS + _TRACKS
}

GENERIC_CHALLENGE_STYLE = "Algorithmic problem with a clear function signature."


def get_profile(selection: str) -> SelectionProfile | None:
    """Look up the profile for a selection string."""
    return PROFILE_CATALOG.get(selection)


def get_profiles_by_kind(kind: ProfileKind) -> list[SelectionProfile]:
    """All profiles of one kind, in catalog order."""
    return [p for p in PROFILE_CATALOG.values() if p.kind == kind]


def coding_language_for(selection: str) -> str:
    """Code-fence language for a selection; lower-cased selection when unknown."""
    profile = get_profile(selection)
    return profile.coding_language if profile else selection.lower()
