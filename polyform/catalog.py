"""
Project setup questionnaire and feature catalog.

The questionnaire asks which workspaces and options a new monorepo
project should have; the features describe what gets installed for
those answers. ``create_project_resolver()`` wires them together:

    engine = FormEngine(PROJECT_SETUP)
    ... drive the wizard ...
    resolver = create_project_resolver()
    feature_ids = resolver.sort_features(resolver.resolve(engine.get_visible_answers()))
"""

from polyform.core.builders import Activation, Conditions, FormBuilder, Options, Questions, Rules
from polyform.core.features import Feature, FeatureResolver, FeatureStage
from polyform.core.schema import SelectOption

ROOT_FEATURE_ID = "project-dir"


# --- Questionnaire ---


WORKSPACE_OPTIONS = [
    SelectOption(label="React Web App", value="react-webapp", description="React + TypeScript frontend built with Vite"),
    SelectOption(label="GraphQL Server", value="graphql-server", description="Apollo Server API with TypeScript"),
    SelectOption(label="Mobile App", value="mobile-app", description="React Native application"),
]

API_FEATURE_OPTIONS = [
    SelectOption(label="Books Module", value="books", description="Sample books module with queries and mutations"),
    SelectOption(label="Authentication", value="auth", description="User authentication and authorization"),
    SelectOption(label="Database Integration", value="database", description="Prisma ORM integration"),
    SelectOption(label="File Upload", value="upload", description="File upload capabilities"),
    SelectOption(label="Real-time Subscriptions", value="subscriptions", description="GraphQL subscriptions"),
]

GRAPHQL_CLIENT_OPTIONS = [
    SelectOption(label="None", value="none", description="Do not set up a GraphQL client"),
    SelectOption(label="Apollo Client", value="apollo-client"),
    SelectOption(label="URQL", value="urql"),
    SelectOption(label="Relay", value="relay"),
    SelectOption(label="GraphQL Request", value="graphql-request"),
]

MOBILE_FRAMEWORK_OPTIONS = [
    SelectOption(label="Expo", value="expo", description="Managed workflow, fastest start"),
    SelectOption(label="React Native CLI", value="react-native-cli", description="Bare React Native project"),
]

MOBILE_NAVIGATION_OPTIONS = [
    SelectOption(label="React Navigation", value="react-navigation"),
    SelectOption(label="React Native Navigation (Wix)", value="react-native-navigation"),
    SelectOption(label="None", value="none"),
]

PROJECT_SETUP = (
    FormBuilder("create-poly-app", "Create Poly App")
    .description("Let's set up your new project with the features you need.")
    .settings(submit_label="Create Project")

    .group("project-basics", "Project Setup", "Tell us about your project")
    .question(Questions.text(
        "projectName",
        "What is the name of your project?",
        description="This will be used as the directory name and package name",
        required=True,
        default="my-awesome-project",
        placeholder="my-awesome-project",
        validation=[
            Rules.required("Project name is required"),
            Rules.pattern(
                r"^[a-zA-Z0-9-_]+$",
                "Project name can only contain letters, numbers, hyphens, and underscores",
            ),
        ],
    ))
    .question(Questions.text(
        "projectDescription",
        "Project description (optional)",
        placeholder="An awesome application",
    ))

    .group("workspaces", "Workspaces", "Choose the parts of your monorepo")
    .question(Questions.multiselect(
        "projectWorkspaces",
        "Which workspaces should the project include?",
        WORKSPACE_OPTIONS,
        required=True,
        default=["react-webapp", "graphql-server"],
        validation=[Rules.min_items(1, "Select at least one workspace")],
    ))

    .group("api-features", "API Features", "Configure your GraphQL API")
    .group_show_if([Conditions.includes("projectWorkspaces", "graphql-server")])
    .question(Questions.multiselect(
        "apiFeatures",
        "Which API features would you like to include?",
        API_FEATURE_OPTIONS,
        default=["books"],
    ))
    .question(Questions.select(
        "graphqlClient",
        "Which GraphQL client should the apps use?",
        GRAPHQL_CLIENT_OPTIONS,
        default="none",
    ))

    .group("mobile-setup", "Mobile App", "Configure the mobile workspace")
    .group_show_if([Conditions.includes("projectWorkspaces", "mobile-app")])
    .question(Questions.select(
        "mobileFramework",
        "Which mobile framework?",
        MOBILE_FRAMEWORK_OPTIONS,
        required=True,
        default="expo",
    ))
    .question(Questions.select(
        "mobileNavigation",
        "Which navigation library?",
        MOBILE_NAVIGATION_OPTIONS,
        default="react-navigation",
    ))
    .question(Questions.text(
        "mobileAppName",
        "Mobile app display name",
        default="MyApp",
    ))
    .question(Questions.text(
        "bundleId",
        "Bundle identifier",
        placeholder="com.example.myapp",
        validation=[Rules.pattern(r"^[a-zA-Z][\w]*(\.[a-zA-Z][\w]*)+$", "Use reverse-domain notation")],
    ))

    .group("development", "Development Environment", "Configure your development environment")
    .question(Questions.select(
        "packageManager",
        "Which package manager do you prefer?",
        Options.package_managers(),
        required=True,
        default="pnpm",
    ))
    .question(Questions.toggle(
        "enableDevX",
        "Enable the developer experience suite?",
        description="Linting, formatting, Git hooks and release tooling",
        default=True,
    ))
    .build()
)


# --- Features ---


def _client_selected(value, answers) -> bool:
    return bool(value) and value != "none"


FEATURES: list[Feature] = [
    Feature(
        id=ROOT_FEATURE_ID,
        name="Project Directory",
        description="The root directory of the project",
        stages=[
            FeatureStage(name="setup-directory"),
            FeatureStage(name="create-workspace"),
        ],
    ),
    Feature(
        id="vite",
        name="Vite",
        description="A modern frontend build tool",
        depends_on=[ROOT_FEATURE_ID],
        activated_by=Activation.includes_value("projectWorkspaces", "react-webapp"),
        stages=[FeatureStage(name="create-vite-app")],
    ),
    Feature(
        id="tailwind",
        name="TailwindCSS",
        description="A utility-first CSS framework",
        depends_on=["vite"],
        activated_by=Activation.includes_value("projectWorkspaces", "react-webapp"),
        stages=[
            FeatureStage(name="install-tailwind"),
            FeatureStage(name="configure-tailwind"),
        ],
    ),
    Feature(
        id="apollo-server",
        name="Apollo Server",
        description="A GraphQL server",
        depends_on=[ROOT_FEATURE_ID],
        activated_by=Activation.includes_value("projectWorkspaces", "graphql-server"),
        stages=[
            FeatureStage(name="setup-api-structure"),
            FeatureStage(name="install-dependencies"),
            FeatureStage(name="create-modules"),
        ],
    ),
    Feature(
        id="prisma",
        name="Prisma ORM",
        description="Database ORM with schema management and type-safe client generation",
        depends_on=["apollo-server"],
        activated_by=Activation.all_of(
            Activation.includes_value("projectWorkspaces", "graphql-server"),
            Activation.includes_value("apiFeatures", "database"),
        ),
        stages=[
            FeatureStage(name="install-prisma-dependencies"),
            FeatureStage(name="setup-prisma-files"),
            FeatureStage(name="configure-prisma-scripts"),
            FeatureStage(name="generate-prisma-client"),
        ],
    ),
    Feature(
        id="graphql-client",
        name="GraphQL Client",
        description="GraphQL client setup with Relay, URQL, Apollo Client or GraphQL Request",
        depends_on=["vite"],
        activated_by=Activation.all_of(
            Activation.any_of(
                Activation.includes_value("projectWorkspaces", "react-webapp"),
                Activation.includes_value("projectWorkspaces", "mobile-app"),
            ),
            Activation.includes_value("projectWorkspaces", "graphql-server"),
            Activation.custom("graphqlClient", _client_selected),
        ),
        configuration=[
            Questions.text(
                "graphqlEndpoint",
                "GraphQL API Endpoint",
                description="The URL of your GraphQL API endpoint",
                default="http://localhost:4000/graphql",
                placeholder="http://localhost:4000/graphql",
                required=True,
                validation=[
                    Rules.required("GraphQL endpoint is required"),
                    Rules.pattern(r"^https?://.+", "Please enter a valid HTTP/HTTPS URL"),
                ],
            ),
            Questions.text(
                "schemaPath",
                "Schema Path (for Relay)",
                description="Path to your GraphQL schema file (only needed for Relay)",
                default="./schema.graphql",
                show_if=[Conditions.equals("graphqlClient", "relay")],
            ),
        ],
        stages=[
            FeatureStage(
                name="setup-apollo-client",
                activated_by=Activation.equals("graphqlClient", "apollo-client"),
            ),
            FeatureStage(name="setup-urql", activated_by=Activation.equals("graphqlClient", "urql")),
            FeatureStage(name="setup-relay", activated_by=Activation.equals("graphqlClient", "relay")),
            FeatureStage(
                name="setup-graphql-request",
                activated_by=Activation.equals("graphqlClient", "graphql-request"),
            ),
            FeatureStage(
                name="setup-mobile-client",
                activated_by=Activation.includes_value("projectWorkspaces", "mobile-app"),
            ),
        ],
    ),
    Feature(
        id="mobile",
        name="Mobile App Support",
        description="React Native application with navigation and cross-platform capabilities",
        depends_on=["apollo-server"],
        activated_by=Activation.includes_value("projectWorkspaces", "mobile-app"),
        stages=[
            FeatureStage(name="create-expo-app", activated_by=Activation.equals("mobileFramework", "expo")),
            FeatureStage(
                name="create-react-native-app",
                activated_by=Activation.equals("mobileFramework", "react-native-cli"),
            ),
            FeatureStage(
                name="setup-navigation",
                activated_by=Activation.equals("mobileNavigation", "react-navigation"),
            ),
            FeatureStage(
                name="setup-wix-navigation",
                activated_by=Activation.equals("mobileNavigation", "react-native-navigation"),
            ),
        ],
    ),
    Feature(
        id="developer-experience",
        name="Developer Experience Suite",
        description="Linting, formatting, Git automation and productivity tools",
        activated_by=Activation.equals("enableDevX", True),
        configuration=[
            Questions.boolean(
                "includeAccessibility",
                "Include Accessibility Linting",
                description="Add ESLint rules for accessibility (jsx-a11y)",
                default=True,
            ),
            Questions.boolean(
                "includeImportSorting",
                "Enable Import Sorting",
                description="Automatically organize and sort imports",
                default=True,
            ),
            Questions.boolean(
                "enableConventionalCommits",
                "Enable Conventional Commits",
                description="Enforce conventional commit message format",
                default=True,
            ),
            Questions.boolean(
                "enableSemanticRelease",
                "Enable Semantic Release",
                description="Automatic versioning and changelog generation",
                default=False,
            ),
        ],
        stages=[
            FeatureStage(name="install-core-dependencies"),
            FeatureStage(
                name="install-accessibility-tools",
                activated_by=Activation.equals("includeAccessibility", True),
            ),
            FeatureStage(
                name="install-import-sorting-tools",
                activated_by=Activation.equals("includeImportSorting", True),
            ),
            FeatureStage(
                name="install-git-hooks-and-conventional-commits",
                activated_by=Activation.equals("enableConventionalCommits", True),
            ),
            FeatureStage(
                name="install-semantic-release",
                activated_by=Activation.equals("enableSemanticRelease", True),
            ),
        ],
    ),
]


def create_project_resolver() -> FeatureResolver:
    """Return a resolver over the project feature catalog rooted at the project directory."""
    return FeatureResolver(FEATURES, ROOT_FEATURE_ID)
