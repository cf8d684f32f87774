#!/usr/bin/env python3
"""
LFD Actions Classification Session

Command-line tool that labels recorded arm actions against an example
library. In supervised mode the user confirms or corrects each guess and
the labeled action is added to the library, which is saved on exit.

Usage:
    python -m lfd.classify -d data/actions.json -t recording.json
    python -m lfd.classify -d data/actions.json -t a.json b.json -k 5 -v -s
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .data_loader import load_actions, load_dataset, save_dataset
from .knn import ActionClassifier
from .schema import Action, ActionError, EmptyLibraryError, DEFAULT_K


def print_guess(guess: str):
    print(f"Action guess: {guess}")


def confirm_guess(guess: str) -> str:
    """
    Ask the user whether a guess is right.

    Returns the guess if confirmed, otherwise the label the user enters.
    """
    confirm = input("Guess correct? [Y/N]: ").strip()
    if confirm.lower() == 'y':
        return guess
    return ask_label()


def ask_label() -> str:
    label = ""
    while not label:
        label = input("Enter the correct label: ").strip()
    return label


def classify_action(classifier: ActionClassifier, action: Action,
                    supervise: bool = False, verbose: bool = False) -> Optional[str]:
    """
    Classify one recorded action and, if supervised, learn from it.

    Returns:
        The final label (confirmed or corrected when supervised), or None
        if no guess could be made and nothing was learned
    """
    try:
        guess = classifier.guess_classification(action, verbose=verbose)
    except EmptyLibraryError as e:
        print(f"Error: {e}")
        if not supervise:
            return None
        label = ask_label()
    else:
        print_guess(guess)
        if not supervise:
            return guess
        label = confirm_guess(guess)

    classifier.update(action.with_label(label))
    print(f"Added example: {label}")
    return label


def run_session(dataset_path: Path, test_paths: List[Path], k: Optional[int] = None,
                supervise: bool = False, verbose: bool = False) -> List[Optional[str]]:
    """
    Classify every action in the test files, saving the library if supervised.

    Returns:
        Final label per classified action, in file order
    """
    dataset = load_dataset(dataset_path, k=k)
    print(f"dataset path: {dataset_path}")
    print(f"supervised = {str(supervise).lower()}")
    print(f"Loaded {len(dataset)} examples, k={dataset.k}")

    results = []
    try:
        for test_path in test_paths:
            print(f"\nLoading: {test_path}")
            try:
                actions = load_actions(test_path)
            except (OSError, ValueError) as e:
                print(f"Error: {e}")
                continue

            for action in actions:
                print(f"Recorded action with {len(action)} frames")
                try:
                    results.append(classify_action(dataset, action, supervise, verbose))
                except ActionError as e:
                    print(f"Error: {e}")
                    results.append(None)
    finally:
        # Keep labels collected before an interrupted prompt
        if supervise:
            save_dataset(dataset, dataset_path)
            print(f"\nSaved {len(dataset)} examples to {dataset_path}")

    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='LFD Actions k-NN Classifier')
    parser.add_argument(
        '-d', '--dataset', type=str, required=True,
        help='The dataset file'
    )
    parser.add_argument(
        '-t', '--test', type=str, nargs='+', required=True,
        help='Recorded action file(s) to classify'
    )
    parser.add_argument(
        '-k', type=int, default=None,
        help=f'The number of nearest neighbors (default: dataset value or {DEFAULT_K})'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Print the distance to every example'
    )
    parser.add_argument(
        '-s', '--supervise', action='store_true',
        help='Confirm guesses and add labeled actions to the dataset'
    )
    args = parser.parse_args(argv)

    try:
        run_session(
            Path(args.dataset),
            [Path(p) for p in args.test],
            k=args.k,
            supervise=args.supervise,
            verbose=args.verbose
        )
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    except (EOFError, KeyboardInterrupt):
        print("\nInterrupted")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
