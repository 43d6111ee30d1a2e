from setuptools import setup, find_namespace_packages

setup(name='duochat',
      version="0.1",
      description='Executor/verifier refinement loop over two language models',
      long_description='',
      author='Paul',
      author_email='paulxiep@outlook.com',
      url='',
      packages=find_namespace_packages(include=['duochat', 'duochat.*']),
      python_requires='>=3.9',
      install_requires=[
          "langgraph>=0.2"
      ],
      extras_require={
          'llm': ["anthropic>=0.30"],
          'gemini': ["google-genai>=1.0"],
          'test': ["pytest>=7", "pytest-asyncio>=0.21",
               "anthropic>=0.30", "google-genai>=1.0"],
      },
      entry_points={
          'console_scripts': ['duochat=duochat.cli:main'],
      },
      license='Private',
      zip_safe=False,
      keywords='llm agents refinement')
